"""Backend registry: turns ``deployment_state`` blocks into backend handles."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from rt.config.blocks import DeploymentStateConfig
from rt.lib.errors import BackendError
from rt.lib.logging_config import get_logger
from rt.state.backends.base import Backend, BackendHandle, initialize_backend
from rt.state.backends.s3 import S3Backend

logger = get_logger(__name__)

DEFAULT_BACKENDS: Mapping[str, Backend] = MappingProxyType({"s3": S3Backend()})


def _block_body(kind: str, value: Any) -> Mapping[str, Any]:
    # ``deployment_state "kind" {...}`` decodes to a mapping, some decoders
    # wrap it in a one-element list
    if isinstance(value, list):
        if not value:
            return {}
        if len(value) == 1:
            value = value[0]
    if not isinstance(value, Mapping):
        raise BackendError(f"Unable to read configuration of backend {kind}: {value!r}")
    return value


class BackendRegistry:
    """Initializes deployment-state backends from configuration.

    Supported backend kinds are injected at construction and never change
    afterwards. Tests register extra kinds by passing their own mapping.
    """

    def __init__(self, supported_backends: Mapping[str, Backend] | None = None) -> None:
        """Create a registry.

        Args:
            supported_backends: Backend kind name to backend implementation.
                Defaults to DEFAULT_BACKENDS.
        """
        if supported_backends is None:
            supported_backends = DEFAULT_BACKENDS
        self.supported_backends: Mapping[str, Backend] = MappingProxyType(
            dict(supported_backends)
        )

    def load(
        self, config: DeploymentStateConfig | None
    ) -> tuple[BackendHandle, ...]:
        """Initialize every backend defined in the configuration.

        Args:
            config: ``deployment_state`` blocks in document order

        Returns:
            Initialized handles in document order

        Raises:
            BackendError: If no configuration is provided, a backend kind is
                unsupported or repeated, or a backend fails to initialize
        """
        if config is None or not config.blocks:
            raise BackendError("No configuration provided")

        seen: set[str] = set()
        handles: list[BackendHandle] = []
        for block in config.blocks:
            for kind, value in block.items():
                backend = self.supported_backends.get(kind)
                if backend is None:
                    raise BackendError(f"Defined backend {kind} is not supported")
                if kind in seen:
                    raise BackendError(f"Duplicate backend defined ({kind})")

                logger.debug(f"Loading backend {kind}")
                try:
                    handle = initialize_backend(kind, backend, _block_body(kind, value))
                except BackendError as e:
                    raise BackendError(
                        f'Error initializing backend: "{e.message}"'
                    ) from e

                handles.append(handle)
                seen.add(kind)
                logger.debug(f"Backend {kind} loaded")

        if not handles:
            raise BackendError("No loadable backend found")
        return tuple(handles)


def load_backends(
    config: DeploymentStateConfig | None,
    supported_backends: Mapping[str, Backend] | None = None,
) -> tuple[BackendHandle, ...]:
    """Initialize backends with a one-off registry."""
    return BackendRegistry(supported_backends).load(config)
