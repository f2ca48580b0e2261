"""Shared helper functions used by the models and the request client."""

from __future__ import annotations

from datetime import datetime
from typing import Any


def parse_timestamp(timestamp: object) -> datetime | None:
    """Parse an ISO 8601 timestamp from a response payload.

    The backend emits JavaScript ``toISOString()`` values with a trailing
    ``Z``, which ``datetime.fromisoformat`` only accepts on newer
    interpreters, so the suffix is normalised first.

    Args:
        timestamp: ISO 8601 timestamp string, or any other value.

    Returns:
        A ``datetime``, or ``None`` if the input is empty, not a string,
        or unparseable.
    """
    if not isinstance(timestamp, str) or not timestamp:
        return None
    try:
        return datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return None


def coerce_str_list(value: Any) -> tuple[str, ...]:
    """Return *value* as a tuple of non-empty strings, preserving order.

    Non-list values yield an empty tuple; blank entries are dropped.
    """
    if not isinstance(value, list | tuple):
        return ()
    return tuple(str(item) for item in value if item is not None and str(item).strip())
