"""Legacy to current correspondence: exact foreign key first, fuzzy contact second."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from linkwise.domain.errors import ParseError
from linkwise.domain.model import MatchBasis, MatchResult, MigrationStatus
from linkwise.domain.timestamps import local_day

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import date

    from linkwise.domain.model import Record

log = logging.getLogger(__name__)


def _day(record: Record) -> date | None:
    try:
        return local_day(record.timestamp)
    except ParseError as exc:
        log.debug("Excluding %s:%s from fuzzy matching: %s", record.source, record.id_text, exc)
        return None


def _same_contact(legacy: Record, current: Record) -> bool:
    if legacy.email and legacy.email == current.email:
        return True
    return bool(legacy.phone) and legacy.phone == current.phone


def match_exact(legacy: Sequence[Record], current: Sequence[Record]) -> list[MatchResult]:
    """Pair current records carrying a legacy reference with that legacy record.

    The first legacy record with a given id wins. Several current records may
    reference the same legacy record; each of them matches.
    """

    legacy_by_id: dict[str, Record] = {}
    for record in legacy:
        if record.id_text:
            legacy_by_id.setdefault(record.id_text, record)

    matches: list[MatchResult] = []
    for record in current:
        reference = record.legacy_reference
        if not reference:
            continue
        target = legacy_by_id.get(reference)
        if target is None:
            continue
        target.mark(MigrationStatus.MIGRATED)
        record.mark(MigrationStatus.MIGRATED)
        matches.append(
            MatchResult(
                legacy_id=target.id_text,
                current_id=record.id_text,
                basis=MatchBasis.EXACT_FOREIGN_KEY,
            )
        )
    return matches


def match_fuzzy(legacy: Sequence[Record], current: Sequence[Record]) -> list[MatchResult]:
    """Pair unclaimed records sharing an email or phone on the same calendar day.

    Only records still ``not-checked`` take part. The first qualifying current
    record in fetch order wins and cannot be claimed twice.
    """

    candidates: list[tuple[Record, date]] = []
    for record in current:
        if record.migration_status is not MigrationStatus.NOT_CHECKED:
            continue
        day = _day(record)
        if day is not None:
            candidates.append((record, day))

    claimed: set[int] = set()
    matches: list[MatchResult] = []
    for record in legacy:
        if record.migration_status is not MigrationStatus.NOT_CHECKED:
            continue
        if not (record.email or record.phone):
            continue
        day = _day(record)
        if day is None:
            continue
        qualifying = [
            candidate
            for candidate, candidate_day in candidates
            if id(candidate) not in claimed
            and candidate_day == day
            and _same_contact(record, candidate)
        ]
        if not qualifying:
            continue
        if len(qualifying) > 1:
            log.debug(
                "Legacy %s has %d same-day contact matches; taking current %s",
                record.id_text,
                len(qualifying),
                qualifying[0].id_text,
            )
        chosen = qualifying[0]
        claimed.add(id(chosen))
        record.mark(MigrationStatus.PARTIAL)
        chosen.mark(MigrationStatus.PARTIAL)
        matches.append(
            MatchResult(
                legacy_id=record.id_text,
                current_id=chosen.id_text,
                basis=MatchBasis.FUZZY_CONTACT_SAME_DAY,
            )
        )
    return matches


def match_records(legacy: Sequence[Record], current: Sequence[Record]) -> list[MatchResult]:
    """Run the exact pass, then the fuzzy fallback over what remains."""

    exact = match_exact(legacy, current)
    fuzzy = match_fuzzy(legacy, current)
    log.debug("Matched %d exact and %d fuzzy pair(s)", len(exact), len(fuzzy))
    return [*exact, *fuzzy]
