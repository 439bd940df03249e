"""Formatting helpers for user-facing error messages.

RT messages quote names and values with double quotes and render lists and
mappings in a compact bracketed form, e.g. ``["deployment_state" "remote_state"]``
and ``map["key":"//yada/"]``. Existing tooling greps for these shapes, so
every module formats through here.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from typing import Any


def quote(value: object) -> str:
    """Return ``value`` as a double-quoted, escaped string."""
    return json.dumps(str(value), ensure_ascii=False)


def quote_list(items: Iterable[object]) -> str:
    """Render items as ``["a" "b"]``."""
    return "[" + " ".join(quote(item) for item in items) + "]"


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return quote(value)
    if isinstance(value, Mapping):
        return format_mapping(value)
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(_format_value(item) for item in value) + "]"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def format_mapping(mapping: Mapping[str, Any]) -> str:
    """Render a mapping as ``map["k":"v" ...]`` with keys sorted."""
    pairs = (
        f"{quote(key)}:{_format_value(mapping[key])}"
        for key in sorted(mapping, key=str)
    )
    return "map[" + " ".join(pairs) + "]"
