"""Validation utilities for RT identifiers.

This module provides the validators applied to user-supplied identifiers
(environment, application, version, slot id, namespace) and to a few
generic parameter shapes (non-empty strings, paths, percentages and
durations). Every validator takes the parameter name and the candidate
value and raises InvalidParameterError describing the violated rule.
"""

from __future__ import annotations

import os
import re
from collections.abc import Callable
from datetime import timedelta
from typing import Any

import click

from rt.lib.errors import InvalidParameterError
from rt.lib.text import quote

Validator = Callable[[str, Any], None]

ENVIRONMENT_NAME_MAX_LENGTH = 4
ENVIRONMENT_NAME_PATTERN = re.compile(r"[a-zA-Z0-9_]+")

# Combined with the environment name in ELB names, which are limited to 32 chars
APPLICATION_NAME_MAX_LENGTH = 26
APPLICATION_NAME_PATTERN = re.compile(r"[a-zA-Z0-9_-]+")
RESERVED_APPLICATION_NAME = "shared-services"

VERSION_MAX_LENGTH = 25
VERSION_PATTERN = re.compile(r"[a-zA-Z0-9_]+")

SLOT_ID_MAX_LENGTH = 25
SLOT_ID_PATTERN = re.compile(r"[a-zA-Z0-9._-]+")

NAMESPACE_MAX_LENGTH = 255
NAMESPACE_PATTERN = re.compile(r"[a-zA-Z0-9/._\-*'()]+")

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|mo|y|w|d|h|m|s)")

_NANOSECOND = 1
_MICROSECOND = 1000 * _NANOSECOND
_SECOND = 1_000_000 * _MICROSECOND
_DAY = 86400 * _SECOND

# Unit lengths in nanoseconds
_DURATION_UNITS = {
    "ns": _NANOSECOND,
    "us": _MICROSECOND,
    "µs": _MICROSECOND,
    "μs": _MICROSECOND,
    "ms": 1000 * _MICROSECOND,
    "s": _SECOND,
    "m": 60 * _SECOND,
    "h": 3600 * _SECOND,
    "d": _DAY,
    "w": 7 * _DAY,
    "mo": 30 * _DAY,
    "y": 365 * _DAY,
}


def _require_string(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidParameterError(name, f"{quote(name)} expected string")
    return value


def validate_non_empty_string(name: str, value: Any) -> None:
    """Validate that a value is a non-empty string."""
    v = _require_string(name, value)
    if v == "":
        raise InvalidParameterError(name, f"{quote(name)} is a required parameter")


def validate_path(name: str, value: Any) -> None:
    """Validate that a value is a path that exists on the filesystem."""
    v = _require_string(name, value)
    try:
        os.stat(v)
    except OSError as e:
        raise InvalidParameterError(
            name, f"{quote(name)} ({quote(v)}) is not a valid path: {e}"
        ) from e


def validate_percentage(name: str, value: Any) -> None:
    """Validate that a value is a float between 0 and 1 (inclusive)."""
    if not isinstance(value, float):
        raise InvalidParameterError(name, f"{quote(name)} expected float")

    if value < 0 or value > 1.0:
        raise InvalidParameterError(
            name,
            f"{quote(name)} represents a percentage and must be between "
            f"=> 0 and <= 1.0, value: {float(value):f}",
        )


def validate_environment_name(name: str, value: Any) -> None:
    """Validate environment name format.

    Environment names must:
    - Not be empty
    - Be 4 characters or less
    - Contain only alphanumeric characters and underscores

    Raises:
        InvalidParameterError: If the environment name is invalid
    """
    v = _require_string(name, value)
    if len(v) < 1:
        raise InvalidParameterError(
            name, f"{quote(name)} (environment name) is a required parameter."
        )
    if len(v) > ENVIRONMENT_NAME_MAX_LENGTH:
        raise InvalidParameterError(
            name,
            f"{quote(name)} ({quote(v)}) cannot be longer than "
            f"{ENVIRONMENT_NAME_MAX_LENGTH} characters.",
        )
    if not ENVIRONMENT_NAME_PATTERN.fullmatch(v):
        raise InvalidParameterError(
            name,
            f"{quote(name)} ({quote(v)}) may only contain alphanumeric "
            "characters and underscores.",
        )


def validate_application_name(name: str, value: Any) -> None:
    """Validate application name format.

    Application names must:
    - Not be ``shared-services``
    - Not be empty
    - Be 26 characters or less
    - Contain only alphanumeric characters, hyphens and underscores

    Raises:
        InvalidParameterError: If the application name is invalid
    """
    v = _require_string(name, value)
    if v == RESERVED_APPLICATION_NAME:
        raise InvalidParameterError(
            name,
            f"{quote(name)} ({quote(v)}) cannot be called {RESERVED_APPLICATION_NAME} "
            "(for historical reasons), sorry!",
        )
    if len(v) < 1:
        raise InvalidParameterError(
            name, f"{quote(name)} (application name) is a required parameter."
        )
    if len(v) > APPLICATION_NAME_MAX_LENGTH:
        raise InvalidParameterError(
            name,
            f"{quote(name)} ({quote(v)}) cannot be longer than "
            f"{APPLICATION_NAME_MAX_LENGTH} characters.",
        )
    if not APPLICATION_NAME_PATTERN.fullmatch(v):
        raise InvalidParameterError(
            name,
            f"{quote(name)} ({quote(v)}) may only contain alphanumeric "
            "characters, hyphens and underscores.",
        )


def validate_version(name: str, value: Any) -> None:
    """Validate an application version (1-25 alphanumerics or underscores)."""
    v = _require_string(name, value)
    if len(v) < 1:
        raise InvalidParameterError(
            name, f"{quote(name)} (application version) is a required parameter."
        )
    if len(v) > VERSION_MAX_LENGTH:
        raise InvalidParameterError(
            name,
            f"{quote(name)} ({quote(v)}) cannot be longer than "
            f"{VERSION_MAX_LENGTH} characters.",
        )
    if not VERSION_PATTERN.fullmatch(v):
        raise InvalidParameterError(
            name,
            f"{quote(name)} ({quote(v)}) may only contain alphanumeric "
            "characters and underscores.",
        )


def validate_slot_id(name: str, value: Any) -> None:
    """Validate a slot id.

    Empty slot ids are allowed (the default slot). Single characters are
    accepted as-is; longer ids may contain alphanumerics, dots, hyphens
    and underscores, up to 25 characters.
    """
    v = _require_string(name, value)
    if len(v) > SLOT_ID_MAX_LENGTH:
        raise InvalidParameterError(
            name,
            f"{quote(name)} ({quote(v)}) cannot be longer than "
            f"{SLOT_ID_MAX_LENGTH} characters.",
        )
    if len(v) > 1 and not SLOT_ID_PATTERN.fullmatch(v):
        raise InvalidParameterError(
            name,
            f"{quote(name)} ({quote(v)}) may only contain alphanumeric "
            "characters, dots, hyphens and underscores.",
        )


def parse_duration(value: str) -> timedelta:
    """Parse a compound duration such as ``1y2mo3d4h30m``.

    Accepts the usual h/m/s/ms/us/ns units plus days (``d``), weeks
    (``w``), months (``mo``, 30 days) and years (``y``, 365 days), with an
    optional leading sign. A bare ``0`` is a zero duration.

    Raises:
        ValueError: If the string is not a duration
    """
    text = value
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    if text == "0":
        return timedelta(0)
    if not text:
        raise ValueError(f"invalid duration {quote(value)}")

    total_ns = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if not match:
            raise ValueError(f"invalid duration {quote(value)}")
        number, unit = match.groups()
        total_ns += _DURATION_UNITS[unit] * float(number)
        pos = match.end()

    try:
        return timedelta(microseconds=sign * total_ns / _MICROSECOND)
    except OverflowError as e:
        raise ValueError(f"invalid duration {quote(value)}: out of range") from e


def validate_duration(name: str, value: Any) -> None:
    """Validate a non-empty compound duration string."""
    v = _require_string(name, value)
    if v == "":
        raise InvalidParameterError(name, f"{quote(name)} is a required parameter")
    try:
        parse_duration(v)
    except ValueError as e:
        raise InvalidParameterError(name, f"Expected time duration: {e}") from e


def validate_namespace(name: str, value: Any) -> None:
    """Validate a namespace (1-255 chars, alphanumerics and ``/-_.*'()``)."""
    v = _require_string(name, value)
    if len(v) < 1:
        raise InvalidParameterError(name, f"{quote(name)} is a required parameter")
    if len(v) > NAMESPACE_MAX_LENGTH:
        raise InvalidParameterError(
            name,
            f"{quote(name)} ({quote(v)}) cannot be longer than "
            f"{NAMESPACE_MAX_LENGTH} characters.",
        )
    if not NAMESPACE_PATTERN.fullmatch(v):
        raise InvalidParameterError(
            name,
            f"{quote(name)} ({quote(v)}) may only contain alphanumeric characters, "
            "'/', '-', '_', '.', ''', '(', ')' and '*'.",
        )


VALIDATORS: dict[str, Validator] = {
    "non-empty": validate_non_empty_string,
    "path": validate_path,
    "environment": validate_environment_name,
    "application": validate_application_name,
    "version": validate_version,
    "slot-id": validate_slot_id,
    "duration": validate_duration,
    "namespace": validate_namespace,
}


def click_callback(
    validator: Validator,
) -> Callable[[click.Context, click.Parameter, Any], Any]:
    """Adapt a validator into a click option callback.

    ``None`` (option not given) passes through untouched.
    """

    def callback(ctx: click.Context, param: click.Parameter, value: Any) -> Any:
        if value is None:
            return value
        try:
            validator(param.name or "value", value)
        except InvalidParameterError as e:
            raise click.BadParameter(e.message, ctx=ctx, param=param) from e
        return value

    return callback
