"""Entry point that turns raw rows from both stores into one reconciled list."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from linkwise.domain.model import Record, StoreSource

from .matching import match_records
from .merge import MigrationStats, merge

if TYPE_CHECKING:
    from collections.abc import Iterable

    from linkwise.domain.model import MatchResult
    from linkwise.domain.ports import Row

log = logging.getLogger(__name__)

LEGACY_PRIMARY_KEY: Final[str] = "ID"
CURRENT_PRIMARY_KEY: Final[str] = "id"


@dataclass(slots=True)
class ReconciliationResult:
    records: list[Record] = field(default_factory=list[Record])
    stats: MigrationStats = field(default_factory=MigrationStats)
    cross_reference_map: dict[str, str] = field(default_factory=dict[str, str])
    matches: list[MatchResult] = field(default_factory=list["MatchResult"])
    legacy_count: int = 0
    current_count: int = 0


def _records(rows: Iterable[Row], source: StoreSource, primary_key: str) -> list[Record]:
    return [Record(fields=dict(row), source=source, primary_key=primary_key) for row in rows]


def reconcile(
    legacy_rows: Iterable[Row],
    current_rows: Iterable[Row],
    *,
    legacy_primary_key: str = LEGACY_PRIMARY_KEY,
    current_primary_key: str = CURRENT_PRIMARY_KEY,
) -> ReconciliationResult:
    """Match, classify and merge enquiry rows from the legacy and current stores.

    Records are built fresh from the rows on every call, so reconciling the
    same input twice yields the same result.
    """

    legacy = _records(legacy_rows, StoreSource.LEGACY, legacy_primary_key)
    current = _records(current_rows, StoreSource.CURRENT, current_primary_key)
    matches = match_records(legacy, current)
    merged = merge(legacy, current, matches)
    log.info(
        "Reconciled %d legacy and %d current record(s): %d merged, %s migrated",
        len(legacy),
        len(current),
        len(merged.records),
        merged.stats.migration_rate,
    )
    return ReconciliationResult(
        records=merged.records,
        stats=merged.stats,
        cross_reference_map=merged.cross_reference_map,
        matches=matches,
        legacy_count=len(legacy),
        current_count=len(current),
    )
