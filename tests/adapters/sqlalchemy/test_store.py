"""Tests for the reflection-based SQLAlchemy store adapter."""

from __future__ import annotations

from datetime import datetime

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002

from linkwise.adapters.sqlalchemy import SchemaCache, SqlAlchemyStore, StoreContext
from linkwise.domain.closure.catalog import DEFAULT_CATALOGS
from linkwise.domain.errors import QueryError
from linkwise.domain.keys import KeyKind
from linkwise.domain.model import StoreSource
from linkwise.domain.ports import Constraint, MatchMode, Predicate, StoreAdapter
from tests.support.schema import deals, seed_linked_entity


@pytest.fixture
def seeded(legacy_engine: Engine, current_engine: Engine) -> None:
    seed_linked_entity(legacy_engine, current_engine)


@pytest.fixture
def legacy(store_context: StoreContext, seeded: None) -> SqlAlchemyStore:
    return store_context.store(StoreSource.LEGACY)


@pytest.fixture
def current(store_context: StoreContext, seeded: None) -> SqlAlchemyStore:
    return store_context.store(StoreSource.CURRENT)


def _contains(kind: KeyKind, value: str) -> Constraint:
    return Constraint(kind=kind, values=(value,), mode=MatchMode.CONTAINS)


def test_store_satisfies_adapter_protocol(legacy: SqlAlchemyStore) -> None:
    assert isinstance(legacy, StoreAdapter)


def test_resolver_reflects_columns_and_applies_overrides(current: SqlAlchemyStore) -> None:
    enquiries = current.resolver("enquiries")
    matters = current.resolver("Matters")

    assert enquiries.column_for(KeyKind.PROSPECT_ID) == "acid"
    assert enquiries.column_for(KeyKind.EMAIL) == "email"
    assert matters.column_for(KeyKind.DISPLAY_NUMBER) == "Display Number"


def test_resolver_for_missing_table_raises_query_error(current: SqlAlchemyStore) -> None:
    with pytest.raises(QueryError) as excinfo:
        current.resolver("Nope")

    assert excinfo.value.message == "table does not exist"


def test_numeric_key_is_matched_against_text_column(current: SqlAlchemyStore) -> None:
    result = current.query("enquiries", Predicate.values_in(KeyKind.PROSPECT_ID, (500,)))

    assert [row["id"] for row in result.rows] == [41]


def test_text_key_that_cannot_fit_an_integer_column_matches_nothing(
    legacy: SqlAlchemyStore,
) -> None:
    result = legacy.query(
        "enquiries", Predicate.values_in(KeyKind.PROSPECT_ID, ("abc",))
    )

    assert result.applicable
    assert result.rows == ()


def test_email_lookup_ignores_case(legacy: SqlAlchemyStore) -> None:
    result = legacy.query(
        "enquiries", Predicate.values_in(KeyKind.EMAIL, ("alice@example.com",))
    )

    assert [row["ID"] for row in result.rows] == [500]


def test_contains_search_escapes_like_wildcards(legacy: SqlAlchemyStore) -> None:
    plain = legacy.query("enquiries", Predicate.any_of(_contains(KeyKind.FIRST_NAME, "BO")))
    wildcard = legacy.query("enquiries", Predicate.any_of(_contains(KeyKind.FIRST_NAME, "b_b")))

    assert [row["ID"] for row in plain.rows] == [501]
    assert wildcard.rows == ()


def test_all_of_with_missing_column_is_not_applicable(legacy: SqlAlchemyStore) -> None:
    predicate = Predicate.all_of(
        _contains(KeyKind.FIRST_NAME, "alice"),
        _contains(KeyKind.FULL_NAME, "alice smith"),
    )

    result = legacy.query("enquiries", predicate)

    assert not result.applicable
    assert result.missing_kinds == (KeyKind.FULL_NAME,)


def test_any_of_skips_missing_columns(legacy: SqlAlchemyStore) -> None:
    predicate = Predicate.any_of(
        _contains(KeyKind.LAST_NAME, "smith"),
        _contains(KeyKind.FULL_NAME, "smith"),
    )

    result = legacy.query("enquiries", predicate)

    assert result.applicable
    assert result.missing_kinds == (KeyKind.FULL_NAME,)
    assert [row["ID"] for row in result.rows] == [500]


def test_kind_without_column_is_not_applicable(legacy: SqlAlchemyStore) -> None:
    result = legacy.query("enquiries", Predicate.values_in(KeyKind.DEAL_ID, (9001,)))

    assert not result.applicable


def test_query_orders_by_catalog_columns_and_honours_limit(legacy: SqlAlchemyStore) -> None:
    predicate = Predicate.values_in(KeyKind.PROSPECT_ID, (500, 501))

    assert [row["ID"] for row in legacy.query("enquiries", predicate).rows] == [501, 500]
    assert [row["ID"] for row in legacy.query("enquiries", predicate, limit=1).rows] == [501]


def test_execution_failure_becomes_query_error(
    current: SqlAlchemyStore, current_engine: Engine
) -> None:
    current.resolver("Deals")
    deals.drop(current_engine)

    with pytest.raises(QueryError) as excinfo:
        current.query("Deals", Predicate.values_in(KeyKind.DEAL_ID, (9001,)))

    assert "no such table" in excinfo.value.message


def test_driver_rejecting_a_value_becomes_query_error(legacy: SqlAlchemyStore) -> None:
    oversized = 123456789012345678901234

    with pytest.raises(QueryError) as excinfo:
        legacy.query("enquiries", Predicate.values_in(KeyKind.PROSPECT_ID, (oversized,)))

    assert excinfo.value.table == "enquiries"


def test_fetch_returns_most_recent_first(legacy: SqlAlchemyStore) -> None:
    rows = legacy.fetch("enquiries")

    assert [row["ID"] for row in rows] == [501, 500]


def test_fetch_applies_window_to_datetime_column(current: SqlAlchemyStore) -> None:
    rows = current.fetch("enquiries", start=datetime(2024, 1, 6), end=datetime(2024, 1, 31))

    assert [row["id"] for row in rows] == [42]


def test_fetch_applies_window_to_text_column(legacy: SqlAlchemyStore) -> None:
    rows = legacy.fetch("enquiries", start=datetime(2024, 1, 5, 12), limit=10)

    assert [row["ID"] for row in rows] == [501]


def test_fetch_window_without_time_column_raises(current: SqlAlchemyStore) -> None:
    with pytest.raises(QueryError, match="no timestamp column"):
        current.fetch("Deals", start=datetime(2024, 1, 1))


def test_reflection_is_cached_per_table(legacy_engine: Engine) -> None:
    cache = SchemaCache()
    store = SqlAlchemyStore(
        source=StoreSource.LEGACY,
        engine=legacy_engine,
        catalog=DEFAULT_CATALOGS[StoreSource.LEGACY],
        schema_cache=cache,
    )

    store.resolver("enquiries")
    store.fetch("enquiries")

    assert len(cache) == 1
