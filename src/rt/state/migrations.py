"""Forward migrations for deployment-state records.

Each table maps a schema version ``N`` to the function migrating a record
from ``N`` to ``N + 1``. Migrations work on the serialized bytes, so they
never depend on the current record models; they may only rely on the
fields that existed at the version they accept. Tables are append-only.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from rt.lib.logging_config import get_logger

logger = get_logger(__name__)

Migration = Callable[[bytes], bytes]


def _load_document(data: bytes) -> dict[str, Any]:
    document = json.loads(data)
    if not isinstance(document, dict):
        raise ValueError(f"expected a JSON object, got {type(document).__name__}")
    return document


def _dump_document(document: dict[str, Any]) -> bytes:
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False).encode(
        "utf-8"
    )


def migrate_application_v0_to_v1(data: bytes) -> bytes:
    """Application v0 -> v1: structure unchanged, version tag bumped."""
    document = _load_document(data)
    document["v"] = 1
    logger.info("Migrated application from v0 to v1.")
    return _dump_document(document)


def migrate_slot_v0_to_v1(data: bytes) -> bytes:
    """Slot v0 -> v1: structure unchanged, version tag bumped."""
    document = _load_document(data)
    document["v"] = 1
    return _dump_document(document)


def migrate_deployment_v0_to_v1(data: bytes) -> bytes:
    """Deployment v0 -> v1: structure unchanged, version tag bumped."""
    document = _load_document(data)
    document["v"] = 1
    return _dump_document(document)


APPLICATION_MIGRATIONS: Mapping[int, Migration] = MappingProxyType(
    {0: migrate_application_v0_to_v1}
)
SLOT_MIGRATIONS: Mapping[int, Migration] = MappingProxyType({0: migrate_slot_v0_to_v1})
DEPLOYMENT_MIGRATIONS: Mapping[int, Migration] = MappingProxyType(
    {0: migrate_deployment_v0_to_v1}
)
