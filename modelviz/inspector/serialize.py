"""JSON-safe normalisation of record attribute values."""

from __future__ import annotations

import datetime
import math
from collections.abc import Mapping
from typing import Any

from modelviz.config import settings

_PRIMITIVES = (str, int, float, bool, type(None))


def serialize_value(value: Any) -> Any:
    """Convert *value* to a JSON-safe primitive, list or dict.

    Temporal values become ISO-8601 strings, mappings and sequences are
    normalised recursively, and anything else (ObjectIds, UUIDs, Decimals,
    enums...) falls back to ``str(value)``, as do NaN and infinities.
    Never raises.
    """
    try:
        if isinstance(value, float) and not math.isfinite(value):
            return str(value)
        if isinstance(value, _PRIMITIVES):
            return value
        if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
            return value.isoformat()
        if isinstance(value, Mapping):
            return {str(k): serialize_value(v) for k, v in value.items()}
        if isinstance(value, (list, tuple, set, frozenset)):
            return [serialize_value(v) for v in value]
        return str(value)
    except Exception:
        return _last_resort(value)


def _last_resort(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return object.__repr__(value)


def safe_attributes(values: Mapping[str, Any]) -> dict[str, Any]:
    """Drop excluded attribute names and serialise the remaining values."""
    return {
        name: serialize_value(value)
        for name, value in values.items()
        if not settings.is_excluded_attribute(name)
    }
