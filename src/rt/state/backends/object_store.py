"""Record storage on top of a flat key/value object store.

Keys follow the layout RT has always used in S3::

    <prefix>/<app>/APPLICATION.json
    <prefix>/<app>/SLOT-<slot>.json
    <prefix>/<app>/DEPLOYMENT-<slot>-<deployment id>.json

Subclasses only provide the four object primitives and is_ready().
"""

from __future__ import annotations

import re
from abc import abstractmethod
from collections.abc import Iterable
from typing import Any

from rt.lib.errors import AppNotFound, DeploymentNotFound, SlotNotFound
from rt.lib.logging_config import get_logger
from rt.models.records import ApplicationRecord, DeploymentRecord, SlotRecord
from rt.state.backends.base import Backend
from rt.state.codec import APPLICATION_CODEC, DEPLOYMENT_CODEC, SLOT_CODEC

logger = get_logger(__name__)

APPLICATION_OBJECT = "APPLICATION.json"
SLOT_OBJECT_PREFIX = "SLOT-"
DEPLOYMENT_OBJECT_PREFIX = "DEPLOYMENT-"
OBJECT_SUFFIX = ".json"


def app_prefix(prefix: str) -> str:
    return f"{prefix}/"


def app_key(prefix: str, app_name: str) -> str:
    return f"{prefix}/{app_name.strip('/')}/{APPLICATION_OBJECT}"


def slot_prefix(prefix: str, app_name: str) -> str:
    return f"{prefix}/{app_name}/{SLOT_OBJECT_PREFIX}"


def slot_key(prefix: str, app_name: str, slot_id: str) -> str:
    return f"{slot_prefix(prefix, app_name)}{slot_id}{OBJECT_SUFFIX}"


def deployment_prefix(prefix: str, app_name: str, slot_id: str) -> str:
    return f"{prefix}/{app_name}/{DEPLOYMENT_OBJECT_PREFIX}{slot_id}-"


def deployment_key(prefix: str, app_name: str, slot_id: str, deployment_id: str) -> str:
    return f"{deployment_prefix(prefix, app_name, slot_id)}{deployment_id}{OBJECT_SUFFIX}"


def _strip(key: str, prefix: str) -> str:
    return key[len(prefix) :].removesuffix(OBJECT_SUFFIX)


class ObjectStoreBackend(Backend):
    """Backend persisting records as JSON objects under a key prefix.

    ``meta`` returned from configure() must expose a ``prefix`` attribute
    without a trailing slash.
    """

    @abstractmethod
    def _get_object(self, meta: Any, key: str) -> bytes | None:
        """Return the object body, or None if the key does not exist."""

    @abstractmethod
    def _put_object(self, meta: Any, key: str, data: bytes) -> None:
        """Create or replace an object."""

    @abstractmethod
    def _list_keys(self, meta: Any, prefix: str) -> Iterable[str]:
        """Yield keys starting with ``prefix`` in lexicographic order."""

    @abstractmethod
    def _delete_object(self, meta: Any, key: str) -> None:
        """Delete an object; deleting a missing key is not an error."""

    def list_applications(self, meta: Any) -> list[ApplicationRecord]:
        prefix = app_prefix(meta.prefix)
        pattern = re.compile(
            rf"^{re.escape(prefix)}([^/]+)/{re.escape(APPLICATION_OBJECT)}$"
        )
        logger.debug(f"Listing applications under {prefix!r}")

        apps = []
        for key in self._list_keys(meta, prefix):
            match = pattern.match(key)
            if match is None:
                continue
            data = self._get_object(meta, key)
            if data is None:
                continue
            app = APPLICATION_CODEC.from_bytes(data)
            app.name = match.group(1)
            apps.append(app)
        return apps

    def get_application(self, meta: Any, name: str) -> ApplicationRecord:
        key = app_key(meta.prefix, name)
        logger.debug(f"Getting application {name!r} from {key!r}")
        data = self._get_object(meta, key)
        if data is None:
            raise AppNotFound(name)
        app = APPLICATION_CODEC.from_bytes(data)
        app.name = name
        return app

    def save_application(
        self, meta: Any, name: str, record: ApplicationRecord
    ) -> None:
        key = app_key(meta.prefix, name)
        logger.debug(f"Saving application {name!r} into {key!r}")
        self._put_object(meta, key, APPLICATION_CODEC.to_bytes(record))

    def list_slots(self, meta: Any, app_name: str) -> list[SlotRecord]:
        prefix = slot_prefix(meta.prefix, app_name)
        logger.debug(f"Listing slots under {prefix!r}")

        slots = []
        for key in self._list_keys(meta, prefix):
            data = self._get_object(meta, key)
            if data is None:
                continue
            slot = SLOT_CODEC.from_bytes(data)
            slot.slot_id = _strip(key, prefix)
            slots.append(slot)
        return slots

    def delete_slot(self, meta: Any, app_name: str, slot_id: str) -> None:
        key = slot_key(meta.prefix, app_name, slot_id)
        logger.debug(f"Deleting slot {key!r}")
        self._delete_object(meta, key)

    def save_slot(
        self, meta: Any, app_name: str, slot_id: str, record: SlotRecord
    ) -> None:
        key = slot_key(meta.prefix, app_name, slot_id)
        logger.debug(f"Saving slot into {key!r}")
        self._put_object(meta, key, SLOT_CODEC.to_bytes(record))

    def get_slot(self, meta: Any, app_name: str, slot_id: str) -> SlotRecord:
        key = slot_key(meta.prefix, app_name, slot_id)
        logger.debug(f"Getting slot from {key!r}")
        data = self._get_object(meta, key)
        if data is None:
            raise SlotNotFound(slot_id)
        slot = SLOT_CODEC.from_bytes(data)
        slot.slot_id = slot_id
        return slot

    def list_sorted_deployments_for_slot(
        self, meta: Any, app_name: str, slot_id: str, limit: int
    ) -> list[DeploymentRecord]:
        """Return deployments in key order, at most ``limit`` (0 for all).

        Deployment ids are reverse timestamps, so key order is newest first.
        """
        prefix = deployment_prefix(meta.prefix, app_name, slot_id)
        logger.debug(f"Listing deployments under {prefix!r}")

        deployments: list[DeploymentRecord] = []
        for key in self._list_keys(meta, prefix):
            deployment_id = _strip(key, prefix)
            # Belongs to another slot whose id starts with this one
            if "-" in deployment_id:
                continue
            if limit > 0 and len(deployments) >= limit:
                break
            data = self._get_object(meta, key)
            if data is None:
                continue
            deployment = DEPLOYMENT_CODEC.from_bytes(data)
            deployment.deployment_id = deployment_id
            deployments.append(deployment)
        return deployments

    def save_deployment(
        self,
        meta: Any,
        app_name: str,
        slot_id: str,
        deployment_id: str,
        record: DeploymentRecord,
    ) -> None:
        key = deployment_key(meta.prefix, app_name, slot_id, deployment_id)
        logger.debug(f"Saving deployment into {key!r}")
        self._put_object(meta, key, DEPLOYMENT_CODEC.to_bytes(record))

    def get_deployment(
        self, meta: Any, app_name: str, slot_id: str, deployment_id: str
    ) -> DeploymentRecord:
        key = deployment_key(meta.prefix, app_name, slot_id, deployment_id)
        logger.debug(f"Getting deployment from {key!r}")
        data = self._get_object(meta, key)
        if data is None:
            raise DeploymentNotFound(deployment_id)
        deployment = DEPLOYMENT_CODEC.from_bytes(data)
        deployment.deployment_id = deployment_id
        return deployment
