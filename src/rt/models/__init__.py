"""Pydantic models for RT deployment-state records."""

from rt.models.records import (
    APPLICATION_SCHEMA_VERSION,
    DEPLOYMENT_SCHEMA_VERSION,
    SLOT_SCHEMA_VERSION,
    ApplicationRecord,
    DeployPilot,
    DeploymentRecord,
    FinishedTerraformRun,
    ResourceDiff,
    SlotRecord,
    TerraformRun,
)

__all__ = [
    "APPLICATION_SCHEMA_VERSION",
    "DEPLOYMENT_SCHEMA_VERSION",
    "SLOT_SCHEMA_VERSION",
    "ApplicationRecord",
    "DeployPilot",
    "DeploymentRecord",
    "FinishedTerraformRun",
    "ResourceDiff",
    "SlotRecord",
    "TerraformRun",
]
