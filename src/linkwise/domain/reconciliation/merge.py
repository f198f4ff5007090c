"""Merged enquiry list, composite de-duplication and migration statistics."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from linkwise.domain.errors import ParseError
from linkwise.domain.model import MigrationStatus
from linkwise.domain.timestamps import local_day

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from linkwise.domain.model import MatchResult, Record

type DedupKey = tuple[str, str, str, str, str]


@dataclass(frozen=True, slots=True)
class MigrationStats:
    total: int = 0
    migrated: int = 0
    partial: int = 0
    not_migrated: int = 0
    not_checked: int = 0
    instructions_only: int = 0

    @property
    def migration_rate(self) -> str:
        """``migrated / total`` as a one-decimal percentage; ``0.0%`` for no records."""

        if self.total == 0:
            return "0.0%"
        return f"{self.migrated / self.total * 100:.1f}%"

    @classmethod
    def from_records(cls, legacy: Iterable[Record]) -> MigrationStats:
        counts = dict.fromkeys(MigrationStatus, 0)
        total = 0
        for record in legacy:
            total += 1
            counts[record.migration_status] += 1
        return cls(
            total=total,
            migrated=counts[MigrationStatus.MIGRATED],
            partial=counts[MigrationStatus.PARTIAL],
            not_migrated=counts[MigrationStatus.NOT_MIGRATED],
            not_checked=counts[MigrationStatus.NOT_CHECKED],
            instructions_only=counts[MigrationStatus.INSTRUCTIONS_ONLY],
        )


@dataclass(slots=True)
class MergeResult:
    records: list[Record] = field(default_factory=list["Record"])
    stats: MigrationStats = field(default_factory=MigrationStats)
    cross_reference_map: dict[str, str] = field(default_factory=dict[str, str])


def dedup_key(record: Record) -> DedupKey:
    """Identity used to collapse repeated rows within one source.

    Legacy ids are shared by distinct people, so the id alone never suffices.
    """

    try:
        day = local_day(record.timestamp).isoformat()
    except ParseError:
        day = ""
    return (
        record.source.value,
        record.id_text,
        record.email or record.phone,
        record.full_name,
        day,
    )


def deduplicate(records: Iterable[Record]) -> list[Record]:
    seen: set[DedupKey] = set()
    unique: list[Record] = []
    for record in records:
        key = dedup_key(record)
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique


def cross_reference_map(matches: Iterable[MatchResult]) -> dict[str, str]:
    """Legacy id to current id, keeping the first match recorded for each legacy id.

    Exact matches come before fuzzy ones, so an exact pairing is never replaced.
    """

    mapping: dict[str, str] = {}
    for match in matches:
        mapping.setdefault(match.legacy_id, match.current_id)
    return mapping


def merge(
    legacy: Sequence[Record],
    current: Sequence[Record],
    matches: Sequence[MatchResult],
) -> MergeResult:
    """Legacy records first, then current records that matched nothing.

    Migration totals count every fetched legacy row, repeats included.
    """

    matched_current = {match.current_id for match in matches if match.current_id}
    unmatched_current = [
        record
        for record in current
        if record.migration_status is MigrationStatus.NOT_CHECKED
        and record.id_text not in matched_current
    ]
    unique_legacy = deduplicate(legacy)
    unique_current = deduplicate(unmatched_current)
    return MergeResult(
        records=[*unique_legacy, *unique_current],
        stats=MigrationStats.from_records(legacy),
        cross_reference_map=cross_reference_map(matches),
    )
