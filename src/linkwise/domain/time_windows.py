"""Time bounds for the enquiry fetch that feeds reconciliation.

Both stores are read with the same resolved UTC bounds, so the legacy and
current sides of one reconciliation cover the same period. Bounds are
inclusive and compared against each store's own timestamp column.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from linkwise.domain.enquiries import EnquiryFetchRequest

type Bounds = tuple[datetime | None, datetime | None]


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class TimeWindow:
    """Explicit bounds, a trailing lookback, or both.

    With both, the later of ``start`` and ``end - lookback`` wins. A lookback
    without ``end`` is anchored at the clock's current time when resolved.
    """

    start: datetime | None = None
    end: datetime | None = None
    lookback: timedelta | None = None

    def __post_init__(self) -> None:
        for name, value in (("start", self.start), ("end", self.end)):
            if value is not None and value.tzinfo is None:
                raise ValueError(f"Time window {name} must include timezone information")
        if self.lookback is not None and self.lookback < timedelta(0):
            raise ValueError("Lookback duration must be non-negative")
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError("Time window start must be before end")

    @classmethod
    def trailing_hours(cls, hours: float, *, end: datetime | None = None) -> TimeWindow:
        return cls(end=end, lookback=timedelta(hours=hours))

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None and self.lookback is None

    def resolve(self, *, clock: Clock = _utcnow) -> Bounds:
        """Concrete UTC bounds; either side may stay open."""

        end = self.end.astimezone(UTC) if self.end is not None else None
        start = self.start.astimezone(UTC) if self.start is not None else None
        if self.lookback is None:
            return start, end

        anchor = end if end is not None else clock().astimezone(UTC)
        trailing_start = anchor - self.lookback
        start = trailing_start if start is None else max(start, trailing_start)
        if start > anchor:
            raise ValueError("Time window start must be before end")
        return start, anchor

    def __str__(self) -> str:
        parts = [
            f"{name}={value.isoformat()}"
            for name, value in (("start", self.start), ("end", self.end))
            if value is not None
        ]
        if self.lookback is not None:
            parts.append(f"lookback={self.lookback}")
        return ", ".join(parts) or "unbounded"


def apply_time_window(
    request: EnquiryFetchRequest,
    window: TimeWindow,
    *,
    clock: Clock = _utcnow,
) -> EnquiryFetchRequest:
    """Copy of ``request`` whose start and end come from ``window``."""

    start, end = window.resolve(clock=clock)
    return replace(request, start=start, end=end)


__all__ = ["Bounds", "Clock", "TimeWindow", "apply_time_window"]
