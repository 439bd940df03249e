"""Versioned JSON codec for deployment-state records.

Encoding stamps the current schema version on the record. Decoding first
peeks at the ``v`` tag only and then either rejects the document (newer
than this RT release, or no migration path), migrates it one version at a
time, or validates it into the record model once it is current.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from rt.lib.errors import (
    MigrationError,
    MissingMigrationError,
    RecordDecodeError,
    SchemaVersionError,
)
from rt.lib.logging_config import get_logger
from rt.models.records import (
    APPLICATION_SCHEMA_VERSION,
    DEPLOYMENT_SCHEMA_VERSION,
    SLOT_SCHEMA_VERSION,
    ApplicationRecord,
    DeploymentRecord,
    SlotRecord,
    WireModel,
)
from rt.state.migrations import (
    APPLICATION_MIGRATIONS,
    DEPLOYMENT_MIGRATIONS,
    SLOT_MIGRATIONS,
    Migration,
)

logger = get_logger(__name__)

R = TypeVar("R", bound=WireModel)


class _SchemaVersion(BaseModel):
    """The only part of a record read before migrating it."""

    model_config = ConfigDict(extra="ignore")

    version: int = Field(default=0, alias="v")


class RecordCodec(Generic[R]):
    """Serializes one record kind to and from versioned JSON bytes."""

    def __init__(
        self,
        kind: str,
        model: type[R],
        current_version: int,
        migrations: Mapping[int, Migration],
    ) -> None:
        """Create a codec.

        Args:
            kind: Record kind used in error messages, e.g. "application"
            model: Record model class
            current_version: Schema version written by this RT release
            migrations: Migration table keyed by the version each step accepts
        """
        self.kind = kind
        self.model = model
        self.current_version = current_version
        self.migrations = migrations

    def to_bytes(self, record: R) -> bytes:
        """Stamp the current schema version on ``record`` and serialize it."""
        record.schema_version = self.current_version
        return record.model_dump_json(by_alias=True).encode("utf-8")

    def peek_version(self, data: bytes) -> int:
        """Return the schema version of serialized record bytes.

        Raises:
            RecordDecodeError: If the bytes are not a JSON object with an
                integer ``v`` tag
        """
        try:
            return _SchemaVersion.model_validate_json(data).version
        except PydanticValidationError as e:
            raise RecordDecodeError(
                self.kind, f"Failed to read {self.kind} schema version: {e}"
            ) from e

    def from_bytes(self, data: bytes | str) -> R:
        """Deserialize record bytes, migrating older schema versions.

        Raises:
            SchemaVersionError: If the record is newer than this RT release
            MissingMigrationError: If an older version has no migration
            MigrationError: If a migration step fails
            RecordDecodeError: If the bytes do not describe a valid record
        """
        if isinstance(data, str):
            data = data.encode("utf-8")

        while True:
            version = self.peek_version(data)

            if version > self.current_version:
                raise SchemaVersionError(self.kind, version)
            if version == self.current_version:
                break

            migration = self.migrations.get(version)
            if migration is None:
                raise MissingMigrationError(self.kind, version)
            try:
                migrated = migration(data)
            except (ValueError, TypeError, KeyError) as e:
                raise MigrationError(self.kind, version, str(e)) from e

            if self.peek_version(migrated) != version + 1:
                raise MigrationError(
                    self.kind, version, "migration did not advance the schema version"
                )
            logger.debug(f"Migrated {self.kind} data from v{version} to v{version + 1}")
            data = migrated

        try:
            return self.model.model_validate_json(data)
        except PydanticValidationError as e:
            raise RecordDecodeError(
                self.kind, f"Failed to decode {self.kind} data: {e}"
            ) from e


APPLICATION_CODEC: RecordCodec[ApplicationRecord] = RecordCodec(
    "application", ApplicationRecord, APPLICATION_SCHEMA_VERSION, APPLICATION_MIGRATIONS
)
SLOT_CODEC: RecordCodec[SlotRecord] = RecordCodec(
    "slot", SlotRecord, SLOT_SCHEMA_VERSION, SLOT_MIGRATIONS
)
DEPLOYMENT_CODEC: RecordCodec[DeploymentRecord] = RecordCodec(
    "deployment", DeploymentRecord, DEPLOYMENT_SCHEMA_VERSION, DEPLOYMENT_MIGRATIONS
)
