"""Deployment-state records persisted by RT backends.

Every record kind (application, slot, deployment) carries its schema
version under the ``v`` key. The ``name``/``slot_id``/``deployment_id``
attributes are lookup keys supplied by the backend and are never
serialized.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Annotated, Any, ClassVar

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    SerializerFunctionWrapHandler,
    model_serializer,
)

APPLICATION_SCHEMA_VERSION = 1
SLOT_SCHEMA_VERSION = 1
DEPLOYMENT_SCHEMA_VERSION = 1

# Zero instant as written by earlier RT releases for unset timestamps
ZERO_TIMESTAMP = "0001-01-01T00:00:00Z"

_FRACTION_OVERFLOW_RE = re.compile(r"(\.\d{6})\d+")


def _parse_timestamp(value: Any) -> Any:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        if value.startswith("0001-01-01T00:00:00"):
            return None
        # Nanosecond precision is truncated to microseconds
        return _FRACTION_OVERFLOW_RE.sub(r"\1", value)
    return value


def format_timestamp(value: datetime | None) -> str:
    """Format an instant as RFC 3339 (``Z`` for UTC, trimmed fraction)."""
    if value is None:
        return ZERO_TIMESTAMP
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)

    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")

    offset = value.utcoffset() or timedelta(0)
    if not offset:
        return text + "Z"
    sign = "-" if offset < timedelta(0) else "+"
    minutes = abs(int(offset.total_seconds())) // 60
    return text + f"{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _assume_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _none_to_empty_dict(value: Any) -> Any:
    return {} if value is None else value


def _none_to_empty_list(value: Any) -> Any:
    return [] if value is None else value


Timestamp = Annotated[
    datetime | None,
    BeforeValidator(_parse_timestamp),
    AfterValidator(_assume_utc),
    PlainSerializer(format_timestamp, return_type=str),
]
StringMap = Annotated[dict[str, str], BeforeValidator(_none_to_empty_dict)]
CounterMap = Annotated[dict[str, int], BeforeValidator(_none_to_empty_dict)]
StringList = Annotated[list[str], BeforeValidator(_none_to_empty_list)]


def _is_empty(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return value in (None, "", 0, ZERO_TIMESTAMP) or value == {} or value == []


class WireModel(BaseModel):
    """Base model for records stored by backends.

    Fields listed in ``omit_when_empty`` are dropped from the serialized
    form when they hold their zero value. Unknown keys are ignored on
    input.
    """

    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", validate_assignment=True
    )

    omit_when_empty: ClassVar[frozenset[str]] = frozenset()

    @model_serializer(mode="wrap")
    def serialize_without_empty(self, handler: SerializerFunctionWrapHandler) -> Any:
        data = handler(self)
        if not isinstance(data, dict):
            return data
        fields = type(self).model_fields
        for name in self.omit_when_empty:
            for key in {name, fields[name].alias or name}:
                if key in data and _is_empty(data[key]):
                    del data[key]
        return data


class DeployPilot(WireModel):
    """Identity and network location of whoever started a deployment."""

    aws_api_caller: str = Field(default="", description="IAM/STS caller ARN")
    ip_address: str = Field(default="", description="Caller IP address")


class ResourceDiff(WireModel):
    """Resource counters reported by a Terraform run."""

    created: int = Field(default=0, alias="Created")
    removed: int = Field(default=0, alias="Removed")
    changed: int = Field(default=0, alias="Changed")


class TerraformRun(WireModel):
    """Description of a single Terraform plan/apply cycle."""

    omit_when_empty: ClassVar[frozenset[str]] = frozenset(
        {"resource_diff", "exit_code", "warnings", "stderr"}
    )

    plan_start_time: Timestamp = None
    plan_finish_time: Timestamp = None
    start_time: Timestamp = None
    finish_time: Timestamp = None
    is_destroy: bool = False

    resource_diff: ResourceDiff | None = None
    variables: StringMap = Field(default_factory=dict)
    outputs: StringMap = Field(default_factory=dict)

    terraform_version: str = ""

    exit_code: int = 0
    warnings: StringList = Field(default_factory=list)
    stderr: str = ""


class FinishedTerraformRun(WireModel):
    """Outcome of a Terraform run, merged into a deployment when it ends."""

    omit_when_empty: ClassVar[frozenset[str]] = frozenset(
        {"resource_diff", "exit_code", "warnings", "stderr"}
    )

    plan_start_time: Timestamp = None
    plan_finish_time: Timestamp = None
    start_time: Timestamp = None
    finish_time: Timestamp = None

    resource_diff: ResourceDiff | None = None
    outputs: StringMap = Field(default_factory=dict)

    exit_code: int = 0
    warnings: StringList = Field(default_factory=list)
    stderr: str = ""


class ApplicationRecord(WireModel):
    """Application metadata (``<prefix>/<app>/APPLICATION.json``)."""

    omit_when_empty: ClassVar[frozenset[str]] = frozenset(
        {"last_deployment_time", "slot_counters"}
    )

    schema_version: int = Field(default=APPLICATION_SCHEMA_VERSION, alias="v")
    name: str = Field(default="", exclude=True, description="Application name")

    # Allows app-per-app migration off the central repo
    use_central_git_repo: bool = False

    is_active: bool = False
    infra_outputs: StringMap = Field(default_factory=dict)
    last_rt_version: str = ""
    last_terraform_version: str = ""
    last_deployment_time: Timestamp = None
    last_infra_change_time: Timestamp = None
    slot_counters: CounterMap = Field(default_factory=dict)


class SlotRecord(WireModel):
    """Slot metadata; one slot maps to one application tfstate file."""

    omit_when_empty: ClassVar[frozenset[str]] = frozenset({"last_deploy_pilot"})

    schema_version: int = Field(default=SLOT_SCHEMA_VERSION, alias="v")
    slot_id: str = Field(default="", exclude=True, description="Slot identifier")
    is_active: bool = False

    last_deployment_start_time: Timestamp = None
    last_deploy_pilot: DeployPilot | None = None
    last_terraform_run: TerraformRun | None = None


class DeploymentRecord(WireModel):
    """A single deployment of an application slot."""

    omit_when_empty: ClassVar[frozenset[str]] = frozenset({"deploy_pilot", "terraform"})

    schema_version: int = Field(default=DEPLOYMENT_SCHEMA_VERSION, alias="v")
    deployment_id: str = Field(
        default="", exclude=True, description="Deployment identifier"
    )

    deploy_pilot: DeployPilot | None = None
    start_time: Timestamp = None

    terraform: TerraformRun | None = None

    rt_version: str = ""
