"""Deployment-state facade over the configured backends.

Reads use the first configured backend as the single source of truth;
conflicts between backends are not reconciled. Writes go to every backend
in configuration order.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime, timezone

from rt.config.blocks import DeploymentStateConfig
from rt.lib.errors import (
    AppNotFound,
    BackendError,
    DeploymentNotFound,
    SlotNotFound,
    StateError,
)
from rt.lib.logging_config import get_logger
from rt.models.records import (
    ApplicationRecord,
    DeploymentRecord,
    DeployPilot,
    FinishedTerraformRun,
    SlotRecord,
    TerraformRun,
)
from rt.state.backends.base import Backend, BackendHandle
from rt.state.registry import BackendRegistry
from rt.version import __version__

logger = get_logger(__name__)

_NOT_FOUND = (AppNotFound, SlotNotFound, DeploymentNotFound)

_MAX_INT64 = 2**63 - 1


def generate_deployment_id(now: datetime | None = None) -> str:
    """Return a deployment id that sorts newest first.

    Object stores list keys lexicographically, so ids are the largest
    64-bit integer minus the Unix time, zero-padded to 20 digits.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    return f"{_MAX_INT64 - int(now.timestamp()):020d}"


class DeploymentState:
    """Application, slot and deployment records across all backends."""

    def __init__(
        self, handles: Sequence[BackendHandle], terraform_version: str = ""
    ) -> None:
        """Create the facade.

        Args:
            handles: Initialized backends in configuration order
            terraform_version: Terraform version recorded on new deployments
        """
        self.handles = tuple(handles)
        self.terraform_version = terraform_version

    def _primary(self) -> BackendHandle:
        if not self.handles:
            raise BackendError("No backend found")
        return self.handles[0]

    def are_backends_ready(self) -> bool:
        """Check every backend is ready to persist data.

        Raises:
            BackendError: If a backend fails its readiness check
        """
        ready = True
        for h in self.handles:
            try:
                ready = h.backend.is_ready(h.meta) and ready
            except BackendError as e:
                raise BackendError(
                    f'There was an error getting backend {h.name} ready: "{e.message}"'
                ) from e
        return ready

    def supports_write_lock(self) -> bool:
        h = self._primary()
        return h.backend.supports_write_lock()

    def list_applications(self) -> list[ApplicationRecord]:
        h = self._primary()
        try:
            return h.backend.list_applications(h.meta)
        except BackendError as e:
            raise BackendError(f"Failed listing applications: {e.message}") from e

    def get_application(self, name: str) -> ApplicationRecord:
        h = self._primary()
        return h.backend.get_application(h.meta, name)

    def save_application(self, name: str, record: ApplicationRecord) -> None:
        for h in self.handles:
            try:
                h.backend.save_application(h.meta, name, record)
            except BackendError as e:
                raise BackendError(
                    f"Failed to save application data to backend {h.name}: "
                    f'"{e.message}"'
                ) from e

    def list_slots(self, app_name: str) -> list[SlotRecord]:
        h = self._primary()
        try:
            return h.backend.list_slots(h.meta, app_name)
        except BackendError as e:
            raise BackendError(
                f'Failed to list slots for "{app_name}": {e.message}'
            ) from e

    def get_slot(self, app_name: str, slot_id: str) -> SlotRecord:
        h = self._primary()
        try:
            return h.backend.get_slot(h.meta, app_name, slot_id)
        except _NOT_FOUND:
            raise
        except BackendError as e:
            raise BackendError(
                f'Failed to get slot {slot_id} for "{app_name}": {e.message}'
            ) from e

    def delete_slot(self, app_name: str, slot_id: str) -> None:
        """Delete a slot from every backend.

        All backends are attempted; failures are reported together.
        """
        failures = []
        for h in self.handles:
            try:
                h.backend.delete_slot(h.meta, app_name, slot_id)
            except BackendError as e:
                logger.error(f"Failed deleting slot {slot_id} from {h.name}: {e}")
                failures.append(f"{h.name}: {e.message}")
        if failures:
            raise BackendError(
                f'Failed to delete slot {slot_id} of "{app_name}": ' + "; ".join(failures)
            )

    def list_last_deployments(
        self, app_name: str, slot_id: str, limit: int
    ) -> list[DeploymentRecord]:
        h = self._primary()
        try:
            return h.backend.list_sorted_deployments_for_slot(
                h.meta, app_name, slot_id, limit
            )
        except BackendError as e:
            raise BackendError(
                f'Failed to list last {limit} deployments of "{app_name}"/"{slot_id}": '
                f"{e.message}"
            ) from e

    def get_deployment(
        self, app_name: str, slot_id: str, deployment_id: str
    ) -> DeploymentRecord:
        h = self._primary()
        try:
            return h.backend.get_deployment(h.meta, app_name, slot_id, deployment_id)
        except _NOT_FOUND:
            raise
        except BackendError as e:
            raise BackendError(
                f'Failed getting deployment {deployment_id} of "{app_name}" '
                f"for slot {slot_id}: {e.message}"
            ) from e

    def begin_deployment(
        self,
        app_name: str,
        slot_id: str,
        is_destroy: bool,
        pilot: DeployPilot | None,
        start_time: datetime | None,
        variables: Mapping[str, str] | None = None,
    ) -> DeploymentRecord:
        """Record the start of a deployment in every backend.

        The slot is created (active) if it does not exist yet and its last
        pilot and start time are updated.

        Returns:
            The new deployment record, with ``deployment_id`` set
        """
        deployment_id = generate_deployment_id()
        record = DeploymentRecord(
            deployment_id=deployment_id,
            deploy_pilot=pilot,
            start_time=start_time,
            terraform=TerraformRun(
                is_destroy=is_destroy,
                variables=dict(variables or {}),
                terraform_version=self.terraform_version,
            ),
            rt_version=__version__,
        )

        for h in self.handles:
            try:
                slot = h.backend.get_slot(h.meta, app_name, slot_id)
            except SlotNotFound:
                logger.debug(f"Creating new slot {app_name}/{slot_id} in {h.name}")
                slot = SlotRecord(slot_id=slot_id, is_active=True)
            except BackendError as e:
                raise BackendError(
                    f"Unable to get slot data for {app_name} / {slot_id}: {e.message}"
                ) from e

            slot.last_deploy_pilot = pilot
            slot.last_deployment_start_time = start_time
            try:
                h.backend.save_slot(h.meta, app_name, slot_id, slot)
            except BackendError as e:
                raise BackendError(
                    f"Unable to save slot data for {app_name} / {slot_id}: {e.message}"
                ) from e

            try:
                h.backend.save_deployment(
                    h.meta, app_name, slot_id, deployment_id, record
                )
            except BackendError as e:
                raise BackendError(
                    "There was an error beginning the deployment with backend "
                    f'{h.name}: "{e.message}"'
                ) from e

        return record

    def finish_deployment(
        self,
        app_name: str,
        slot_id: str,
        deployment_id: str,
        is_active: bool,
        record: DeploymentRecord,
        finished_run: FinishedTerraformRun,
    ) -> None:
        """Record the outcome of a deployment in every backend.

        The finished run is merged into ``record.terraform``; the slot's
        activity flag, last pilot and last Terraform run are updated.
        """
        if record.terraform is None:
            record.terraform = TerraformRun()
        tf = record.terraform
        tf.plan_start_time = finished_run.plan_start_time
        tf.plan_finish_time = finished_run.plan_finish_time
        tf.start_time = finished_run.start_time
        tf.finish_time = finished_run.finish_time
        tf.resource_diff = finished_run.resource_diff
        tf.outputs = dict(finished_run.outputs)
        tf.exit_code = finished_run.exit_code
        tf.warnings = list(finished_run.warnings)
        tf.stderr = finished_run.stderr

        for h in self.handles:
            try:
                h.backend.save_deployment(
                    h.meta, app_name, slot_id, deployment_id, record
                )
            except BackendError as e:
                raise BackendError(
                    "There was an error finishing the deployment with backend "
                    f'{h.name}: "{e.message}"'
                ) from e

            try:
                slot = h.backend.get_slot(h.meta, app_name, slot_id)
            except BackendError as e:
                raise BackendError(
                    f"Unable to get slot data for {app_name} / {slot_id}: {e.message}"
                ) from e
            slot.is_active = is_active
            slot.last_deploy_pilot = record.deploy_pilot
            slot.last_terraform_run = tf
            try:
                h.backend.save_slot(h.meta, app_name, slot_id, slot)
            except BackendError as e:
                raise BackendError(
                    f"Unable to save slot data for {app_name} / {slot_id}: {e.message}"
                ) from e

    # Slot counters live in the application record; callers persist it with
    # save_application() once they are done.

    def get_slot_counter(self, prefix: str, app: ApplicationRecord) -> tuple[int, bool]:
        """Return the counter for a slot prefix and whether the prefix exists."""
        if prefix not in app.slot_counters:
            return 0, False
        return app.slot_counters[prefix], True

    def add_slot_counter(self, prefix: str, app: ApplicationRecord) -> ApplicationRecord:
        """Register a new slot prefix with its counter at 0.

        Raises:
            StateError: If the prefix already exists
        """
        if prefix in app.slot_counters:
            raise StateError(
                f"Slot counter {prefix} already exists "
                f"(current value: {app.slot_counters[prefix]})"
            )
        app.slot_counters[prefix] = 0
        return app

    def increment_slot_counter(
        self, prefix: str, app: ApplicationRecord
    ) -> tuple[int, ApplicationRecord]:
        """Increment the counter of a slot prefix and return the new value."""
        app.slot_counters[prefix] = app.slot_counters.get(prefix, 0) + 1
        return app.slot_counters[prefix], app

    def delete_slot_counter(
        self, prefix: str, app: ApplicationRecord
    ) -> ApplicationRecord:
        """Remove a slot prefix.

        Raises:
            StateError: If the prefix does not exist
        """
        if prefix not in app.slot_counters:
            raise StateError(f"Slot counter with prefix {prefix} does not exist")
        del app.slot_counters[prefix]
        return app


def load_deployment_state(
    config: DeploymentStateConfig | None,
    supported_backends: Mapping[str, Backend] | None = None,
    terraform_version: str = "",
) -> DeploymentState:
    """Initialize backends from configuration and wrap them in a facade."""
    handles = BackendRegistry(supported_backends).load(config)
    return DeploymentState(handles, terraform_version=terraform_version)
