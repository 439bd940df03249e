"""Typed configuration blocks for RT documents.

A decoded document is a mapping of block name to a list of block bodies.
parse_blocks() checks each block against SUPPORTED_BLOCKS and dispatches it
to the handler registered for its name, producing an RTConfig.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from rt.config.defaults import (
    DEPLOYMENT_STATE_BLOCK,
    REMOTE_STATE_BLOCK,
    SUPPORTED_BLOCKS,
)
from rt.lib.errors import BlockError
from rt.lib.logging_config import get_logger
from rt.lib.text import quote, quote_list

logger = get_logger(__name__)


class DeploymentStateConfig(BaseModel):
    """Raw ``deployment_state`` blocks in document order.

    Each block maps a backend kind to its backend-specific configuration.
    Interpretation is left to rt.state.registry.BackendRegistry.
    """

    model_config = ConfigDict(frozen=True)

    blocks: list[dict[str, Any]] = Field(
        default_factory=list, description="Backend blocks in document order"
    )


class RemoteState(BaseModel):
    """Terraform remote state configuration (``remote_state`` block)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    backend: str = Field(..., description="Terraform backend kind, e.g. s3")
    config: dict[str, str] = Field(
        default_factory=dict, description="Backend configuration passed to Terraform"
    )


class RTConfig(BaseModel):
    """Typed RT configuration document."""

    model_config = ConfigDict(frozen=True)

    deployment_state: DeploymentStateConfig | None = Field(
        default=None, description="Deployment-state backends"
    )
    remote_state: RemoteState | None = Field(
        default=None, description="Terraform remote state"
    )


BlockHandler = Callable[[list[dict[str, Any]]], tuple[str, Any]]


def _parse_deployment_state(cfgs: list[dict[str, Any]]) -> tuple[str, Any]:
    return "deployment_state", DeploymentStateConfig(blocks=list(cfgs))


def _as_mapping(value: Any) -> Mapping[str, Any] | None:
    # ``config = { ... }`` decodes to a mapping, ``config { ... }`` to a list
    if isinstance(value, Mapping):
        return value
    if isinstance(value, list) and len(value) == 1 and isinstance(value[0], Mapping):
        return value[0]
    return None


def _stringify(block: str, key: str, value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    raise BlockError(
        block, f"Value of {quote(key)} in {quote(block)} must be a string, got {value!r}"
    )


def _parse_remote_state(cfgs: list[dict[str, Any]]) -> tuple[str, Any]:
    block = REMOTE_STATE_BLOCK
    if not cfgs:
        raise BlockError(block, f"No configuration provided for {quote(block)}")

    entry = cfgs[0]
    logger.debug(f"Parsing {block}: {entry!r}")

    if "backend" not in entry:
        raise BlockError(block, f"Missing 'backend' field in {quote(block)}")
    backend = entry["backend"]
    if not isinstance(backend, str):
        raise BlockError(block, f"'backend' field in {quote(block)} must be a string")

    if "config" not in entry:
        raise BlockError(block, f"Missing 'config' field in {quote(block)}")
    raw_config = _as_mapping(entry["config"])
    if raw_config is None:
        raise BlockError(block, f"'config' field in {quote(block)} must be a map")

    config = {key: _stringify(block, key, value) for key, value in raw_config.items()}
    return "remote_state", RemoteState(backend=backend, config=config)


BLOCK_HANDLERS: dict[str, BlockHandler] = {
    DEPLOYMENT_STATE_BLOCK: _parse_deployment_state,
    REMOTE_STATE_BLOCK: _parse_remote_state,
}


def _is_block_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, Mapping) for v in value)


def parse_block(block_key: str, cfgs: list[dict[str, Any]]) -> tuple[str, Any]:
    """Validate a single block kind and convert it to its typed form.

    Args:
        block_key: Top-level block name
        cfgs: All bodies of that block, in document order

    Returns:
        Tuple of the RTConfig field name and its value

    Raises:
        BlockError: If the block is unknown, occurs too often or is malformed
    """
    allowed = SUPPORTED_BLOCKS.get(block_key)
    if allowed is None:
        raise BlockError(
            block_key,
            f"Unrecognised config block ({quote(block_key)}), "
            f"supported: {quote_list(sorted(SUPPORTED_BLOCKS))}",
        )

    occurrences = len(cfgs)
    if occurrences > allowed:
        raise BlockError(
            block_key,
            f"Found {occurrences} occurences of {quote(block_key)}. "
            f"{quote(block_key)} can only occur {allowed} x times in the config.",
        )

    handler = BLOCK_HANDLERS.get(block_key)
    if handler is None:
        raise BlockError(
            block_key, f"Unable to parse block {quote(block_key)} - no handler"
        )
    return handler(cfgs)


def parse_blocks(document: Mapping[str, Any]) -> RTConfig:
    """Convert a decoded document into an RTConfig.

    Blocks are processed in document order; the first failure aborts.

    Raises:
        BlockError: If any block fails validation
    """
    fields: dict[str, Any] = {}
    for block_key, block_cfg in document.items():
        if not _is_block_list(block_cfg):
            raise BlockError(
                block_key,
                f"Unable to convert configuration of {block_key}: {block_cfg!r}",
            )
        field_name, value = parse_block(block_key, block_cfg)
        fields[field_name] = value

    return RTConfig(**fields)
