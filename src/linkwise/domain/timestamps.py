"""Timestamp parsing for calendar-day comparisons.

Each record's calendar day is taken in the record's own offset: an aware
timestamp is never shifted to UTC first, and a naive one is read as-is.
"""

from __future__ import annotations

from datetime import date, datetime

from .errors import ParseError


def parse_timestamp(value: object, *, field: str = "timestamp") -> datetime:
    """Parse a store timestamp into a ``datetime``.

    Accepts ``datetime``/``date`` objects and ISO-8601 strings (a trailing ``Z``
    is treated as UTC). Raises ``ParseError`` for anything else.
    """

    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        raise ParseError(field, value, "unsupported type")
    normalized = value.strip()
    if not normalized:
        raise ParseError(field, value, "empty")
    if normalized.endswith(("Z", "z")):
        normalized = normalized[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ParseError(field, value, "not ISO-8601") from exc


def local_day(value: object, *, field: str = "timestamp") -> date:
    """Calendar day of ``value`` in its own local offset."""

    return parse_timestamp(value, field=field).date()
