"""Base interface for deployment-state backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from rt.lib.errors import BackendError
from rt.lib.text import format_mapping
from rt.models.records import ApplicationRecord, DeploymentRecord, SlotRecord


class Backend(ABC):
    """Abstract base class for deployment-state backends.

    A backend is stateless: configure() turns the backend-specific block of
    the configuration document into an opaque ``meta`` value, which is
    passed back into every other call.
    """

    @abstractmethod
    def configure(self, config: Mapping[str, Any]) -> Any:
        """Validate backend configuration and return backend metadata.

        Args:
            config: Body of the ``deployment_state "<kind>"`` block.

        Returns:
            Opaque metadata passed to every other backend call.

        Raises:
            BackendError: If the configuration is incomplete or invalid.
        """

    def supports_write_lock(self) -> bool:
        """Return whether the backend can lock state against concurrent writes."""
        return False

    @abstractmethod
    def is_ready(self, meta: Any) -> bool:
        """Check the backend can persist data (reachable, permitted)."""

    @abstractmethod
    def list_applications(self, meta: Any) -> list[ApplicationRecord]:
        """Return all applications, with or without slots."""

    @abstractmethod
    def get_application(self, meta: Any, name: str) -> ApplicationRecord:
        """Return application metadata.

        Raises:
            AppNotFound: If the backend has no data for the application.
        """

    @abstractmethod
    def save_application(
        self, meta: Any, name: str, record: ApplicationRecord
    ) -> None:
        """Persist application metadata."""

    @abstractmethod
    def list_slots(self, meta: Any, app_name: str) -> list[SlotRecord]:
        """Return every slot (active and inactive) of an application."""

    @abstractmethod
    def delete_slot(self, meta: Any, app_name: str, slot_id: str) -> None:
        """Delete all slot data held by the backend."""

    @abstractmethod
    def save_slot(
        self, meta: Any, app_name: str, slot_id: str, record: SlotRecord
    ) -> None:
        """Persist slot metadata."""

    @abstractmethod
    def get_slot(self, meta: Any, app_name: str, slot_id: str) -> SlotRecord:
        """Return slot metadata.

        Raises:
            SlotNotFound: If the backend has no data for the slot.
        """

    @abstractmethod
    def list_sorted_deployments_for_slot(
        self, meta: Any, app_name: str, slot_id: str, limit: int
    ) -> list[DeploymentRecord]:
        """Return up to ``limit`` deployments of a slot, newest first."""

    @abstractmethod
    def save_deployment(
        self,
        meta: Any,
        app_name: str,
        slot_id: str,
        deployment_id: str,
        record: DeploymentRecord,
    ) -> None:
        """Persist deployment data."""

    @abstractmethod
    def get_deployment(
        self, meta: Any, app_name: str, slot_id: str, deployment_id: str
    ) -> DeploymentRecord:
        """Return deployment data.

        Raises:
            DeploymentNotFound: If the backend has no data for the deployment.
        """


@dataclass(frozen=True)
class BackendHandle:
    """An initialized backend, identified by its kind name."""

    name: str
    backend: Backend
    meta: Any


def initialize_backend(
    name: str, backend: Backend, config: Mapping[str, Any]
) -> BackendHandle:
    """Configure a backend and wrap it in a handle.

    Raises:
        BackendError: If the backend rejects its configuration.
    """
    try:
        meta = backend.configure(config)
    except (BackendError, ValueError) as e:
        message = e.message if isinstance(e, BackendError) else str(e)
        raise BackendError(
            f"Unable to initalize backend with config: {format_mapping(config)}: "
            f"{message}"
        ) from e
    return BackendHandle(name=name, backend=backend, meta=meta)
