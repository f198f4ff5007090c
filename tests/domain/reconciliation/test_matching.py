from __future__ import annotations

import pytest

from linkwise.domain.model import MatchBasis, MatchResult, MigrationStatus
from linkwise.domain.reconciliation import match_exact, match_fuzzy, match_records
from tests.support.records import current_record, legacy_record


def test_exact_match_on_legacy_reference() -> None:
    legacy = [legacy_record(id="123", email="a@x.com", Date_Created="2024-01-05")]
    current = [current_record(id="9", acid="123", email="a@x.com")]

    matches = match_records(legacy, current)

    assert matches == [MatchResult("123", "9", MatchBasis.EXACT_FOREIGN_KEY)]
    assert legacy[0].migration_status is MigrationStatus.MIGRATED
    assert current[0].migration_status is MigrationStatus.MIGRATED


def test_exact_match_takes_precedence_over_fuzzy() -> None:
    legacy = [legacy_record(ID=1, email="a@x.com", Date_Created="2024-01-05")]
    current = [
        current_record(id=10, email="a@x.com", datetime="2024-01-05T09:00:00"),
        current_record(id=11, acid="1", email="a@x.com", datetime="2024-01-05T10:00:00"),
    ]

    matches = match_records(legacy, current)

    assert matches == [MatchResult("1", "11", MatchBasis.EXACT_FOREIGN_KEY)]
    assert legacy[0].migration_status is MigrationStatus.MIGRATED
    assert current[0].migration_status is MigrationStatus.NOT_CHECKED


def test_several_current_records_may_reference_one_legacy_record() -> None:
    legacy = [legacy_record(ID=1), legacy_record(ID=1, email="other@x.com")]
    current = [current_record(id=10, acid="1"), current_record(id=11, acid=" 1 ")]

    matches = match_exact(legacy, current)

    assert [(match.legacy_id, match.current_id) for match in matches] == [("1", "10"), ("1", "11")]
    assert legacy[0].migration_status is MigrationStatus.MIGRATED
    assert legacy[1].migration_status is MigrationStatus.NOT_CHECKED


def test_unknown_legacy_reference_falls_through_to_fuzzy() -> None:
    legacy = [legacy_record(ID=2, Email="b@y.com", Date_Created="2024-02-01")]
    current = [current_record(id=77, acid="999", email="B@Y.com", datetime="2024-02-01T18:00:00")]

    matches = match_records(legacy, current)

    assert matches == [MatchResult("2", "77", MatchBasis.FUZZY_CONTACT_SAME_DAY)]
    assert legacy[0].migration_status is MigrationStatus.PARTIAL
    assert current[0].migration_status is MigrationStatus.PARTIAL


def test_fuzzy_match_never_crosses_a_calendar_day() -> None:
    legacy = [legacy_record(id="200", email="b@y.com", Date_Created="2024-02-01")]
    current = [current_record(id="77", email="b@y.com", datetime="2024-02-03")]

    assert match_records(legacy, current) == []
    assert legacy[0].migration_status is MigrationStatus.NOT_CHECKED


def test_fuzzy_day_is_each_records_own_local_day() -> None:
    legacy = [legacy_record(ID=3, phone="0123", Date_Created="2024-03-01T23:30:00-05:00")]
    current = [current_record(id=30, phone=" 0123 ", datetime="2024-03-02T04:30:00+00:00")]

    assert match_fuzzy(legacy, current) == []


def test_phone_match_requires_exact_equality() -> None:
    legacy = [legacy_record(ID=4, phone="0123 456", Date_Created="2024-03-01")]
    current = [
        current_record(id=40, phone="0123456", datetime="2024-03-01T09:00:00"),
        current_record(id=41, phone="0123 456", datetime="2024-03-01T10:00:00"),
    ]

    assert match_fuzzy(legacy, current) == [
        MatchResult("4", "41", MatchBasis.FUZZY_CONTACT_SAME_DAY)
    ]


def test_first_qualifying_current_record_wins_and_is_claimed_once(
    caplog_debug: pytest.LogCaptureFixture,
) -> None:
    legacy = [
        legacy_record(ID=5, email="c@z.com", Date_Created="2024-04-01"),
        legacy_record(ID=6, email="c@z.com", Date_Created="2024-04-01"),
    ]
    current = [
        current_record(id=50, email="c@z.com", datetime="2024-04-01T08:00:00"),
        current_record(id=51, email="c@z.com", datetime="2024-04-01T09:00:00"),
    ]

    matches = match_fuzzy(legacy, current)

    assert [(match.legacy_id, match.current_id) for match in matches] == [("5", "50"), ("6", "51")]
    assert "2 same-day contact matches" in caplog_debug.text


@pytest.mark.parametrize("timestamp", [None, "not a date", ""])
def test_unparsable_timestamps_are_excluded_from_fuzzy_matching(timestamp: object) -> None:
    legacy = [legacy_record(ID=7, email="d@w.com", Date_Created=timestamp)]
    current = [current_record(id=70, email="d@w.com", datetime="2024-05-01T08:00:00")]

    assert match_records(legacy, current) == []
    assert legacy[0].migration_status is MigrationStatus.NOT_CHECKED


def test_records_without_contact_details_are_not_fuzzy_matched() -> None:
    legacy = [legacy_record(ID=8, Date_Created="2024-05-01")]
    current = [current_record(id=80, datetime="2024-05-01T08:00:00")]

    assert match_fuzzy(legacy, current) == []
