"""Domain error types.

``QueryError`` and ``ParseError`` are recoverable: callers turn them into
warnings and continue with partial data. ``InvalidStatusTransitionError`` marks a
programming error and propagates.
"""

from __future__ import annotations


class QueryError(RuntimeError):
    """Raised by store adapters when one table query fails."""

    def __init__(self, table: str, message: str) -> None:
        self.table = table
        self.message = message
        super().__init__(f"{table}: {message}")


class ParseError(ValueError):
    """Raised when a date or number inside a record cannot be parsed."""

    def __init__(self, field: str, value: object, reason: str | None = None) -> None:
        self.field = field
        self.value = value
        detail = f" ({reason})" if reason else ""
        super().__init__(f"Cannot parse {field}={value!r}{detail}")


class InvalidStatusTransitionError(ValueError):
    """Raised when a migration status would move backwards."""
