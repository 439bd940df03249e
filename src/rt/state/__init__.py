"""Deployment-state persistence for RT.

Main components:
- BackendRegistry: Initialize backends from ``deployment_state`` blocks
- DeploymentState: Read from the first backend, write to all of them
- RecordCodec: Versioned JSON encoding with schema migrations
"""

from rt.state.codec import (
    APPLICATION_CODEC,
    DEPLOYMENT_CODEC,
    SLOT_CODEC,
    RecordCodec,
)
from rt.state.deployment_state import (
    DeploymentState,
    generate_deployment_id,
    load_deployment_state,
)
from rt.state.registry import DEFAULT_BACKENDS, BackendRegistry, load_backends

__all__ = [
    "APPLICATION_CODEC",
    "DEFAULT_BACKENDS",
    "DEPLOYMENT_CODEC",
    "SLOT_CODEC",
    "BackendRegistry",
    "DeploymentState",
    "RecordCodec",
    "generate_deployment_id",
    "load_backends",
    "load_deployment_state",
]
