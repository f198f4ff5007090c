"""In-memory store adapter for exercising expansion and reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from linkwise.domain.closure.catalog import DEFAULT_CATALOGS, StoreCatalog, TableSpec
from linkwise.domain.closure.columns import ColumnResolver
from linkwise.domain.errors import QueryError
from linkwise.domain.fields import TIMESTAMP_FIELDS, first_value
from linkwise.domain.keys import KeyKind
from linkwise.domain.model import StoreSource
from linkwise.domain.ports import Combine, MatchMode, QueryResult
from linkwise.domain.timestamps import parse_timestamp

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from linkwise.domain.ports import Constraint, Predicate, Row


def _default_catalog(source: StoreSource, tables: Mapping[str, object]) -> StoreCatalog:
    base = DEFAULT_CATALOGS[source]
    known = {spec.name: spec for spec in base.tables}
    return StoreCatalog(
        source=source,
        tables=tuple(known.get(name, TableSpec(name=name)) for name in tables),
        cross_references=tuple(
            reference for reference in base.cross_references if reference.table in tables
        ),
    )


@dataclass(slots=True)
class FakeStore:
    """Rows per table held in memory; columns are the union of the rows' keys."""

    source: StoreSource
    tables: dict[str, list[dict[str, object]]]
    extra_columns: dict[str, tuple[str, ...]] = field(default_factory=dict)
    failing_tables: set[str] = field(default_factory=set)
    broken_tables: set[str] = field(default_factory=set)
    catalog_override: StoreCatalog | None = None
    on_query: Callable[[str, Predicate], None] | None = None
    calls: list[tuple[str, Predicate]] = field(default_factory=list)
    fetch_calls: list[dict[str, object]] = field(default_factory=list)

    @property
    def catalog(self) -> StoreCatalog:
        if self.catalog_override is not None:
            return self.catalog_override
        return _default_catalog(self.source, self.tables)

    def columns(self, table: str) -> tuple[str, ...]:
        seen: dict[str, None] = {}
        for row in self.tables[table]:
            for name in row:
                seen.setdefault(name, None)
        for name in self.extra_columns.get(table, ()):
            seen.setdefault(name, None)
        return tuple(seen)

    def resolver(self, table: str) -> ColumnResolver:
        if table in self.broken_tables or table not in self.tables:
            raise QueryError(table, "table does not exist")
        try:
            overrides = self.catalog.spec(table).key_columns
        except KeyError:
            overrides = {}
        return ColumnResolver(table=table, columns=self.columns(table), overrides=overrides)

    def query(
        self,
        table: str,
        predicate: Predicate,
        *,
        limit: int | None = None,
    ) -> QueryResult:
        self.calls.append((table, predicate))
        if self.on_query is not None:
            self.on_query(table, predicate)
        if table in self.failing_tables:
            raise QueryError(table, "connection reset")
        resolver = self.resolver(table)
        columns = {kind: resolver.column_for(kind) for kind in predicate.kinds}
        missing = tuple(kind for kind, column in columns.items() if column is None)
        if missing and (predicate.combine is Combine.ALL or len(missing) == len(columns)):
            return QueryResult.not_applicable(table, missing)

        rows = [row for row in self.tables[table] if _matches(row, predicate, columns)]
        if limit is not None:
            rows = rows[:limit]
        return QueryResult(
            table=table, rows=tuple(dict(row) for row in rows), missing_kinds=missing
        )

    def fetch(
        self,
        table: str,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = None,
        time_fields: tuple[str, ...] = TIMESTAMP_FIELDS,
    ) -> list[Row]:
        self.fetch_calls.append({"table": table, "start": start, "end": end, "limit": limit})
        if table in self.failing_tables:
            raise QueryError(table, "connection reset")
        rows: list[Row] = []
        for row in self.tables.get(table, []):
            if start is not None or end is not None:
                stamp = _as_utc(parse_timestamp(first_value(row, time_fields)))
                if start is not None and stamp < _as_utc(start):
                    continue
                if end is not None and stamp > _as_utc(end):
                    continue
            rows.append(dict(row))
        return rows[:limit] if limit is not None else rows


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _value_matches(value: object, constraint: Constraint) -> bool:
    if value is None:
        return False
    text = str(value).strip()
    if constraint.mode is MatchMode.CONTAINS:
        return any(str(wanted).casefold() in text.casefold() for wanted in constraint.values)
    if constraint.kind is KeyKind.EMAIL:
        return text.casefold() in {str(wanted).casefold() for wanted in constraint.values}
    return text in {str(wanted) for wanted in constraint.values}


def _matches(
    row: Mapping[str, object],
    predicate: Predicate,
    columns: Mapping[KeyKind, str | None],
) -> bool:
    results = [
        _value_matches(row.get(column), constraint)
        for constraint in predicate.constraints
        if (column := columns.get(constraint.kind)) is not None
    ]
    if predicate.combine is Combine.ALL:
        return all(results)
    return any(results)


def linked_entity_stores() -> tuple[FakeStore, FakeStore]:
    """Legacy prospect 500 and its instruction HLX-500-12 linked across current tables."""

    legacy = FakeStore(
        source=StoreSource.LEGACY,
        tables={
            "enquiries": [
                {
                    "ID": 500,
                    "First_Name": "Alice",
                    "Last_Name": "Smith",
                    "Email": "Alice@Example.com",
                    "Date_Created": "2024-01-05",
                },
                {
                    "ID": 502,
                    "First_Name": "Alice",
                    "Last_Name": "Smithson",
                    "Email": "asmithson@example.com",
                    "Date_Created": "2024-01-08",
                },
            ]
        },
    )
    current = FakeStore(
        source=StoreSource.CURRENT,
        tables={
            "enquiries": [
                {
                    "id": 41,
                    "acid": "500",
                    "first": "Alice",
                    "last": "Smith",
                    "email": "alice@example.com",
                    "datetime": "2024-01-05T09:30:00",
                },
                {
                    "id": 43,
                    "acid": None,
                    "first": "Carol",
                    "last": "White",
                    "email": "team@example.com",
                    "datetime": "2024-01-07T10:00:00",
                },
            ],
            "Instructions": [
                {
                    "InstructionRef": "HLX-500-12",
                    "ProspectId": 500,
                    "Email": "alice@example.com",
                    "Stage": "proof-of-id-complete",
                }
            ],
            "Deals": [
                {
                    "DealId": 9001,
                    "InstructionRef": "HLX-500-12",
                    "ProspectId": 500,
                    "Passcode": "12",
                }
            ],
            "Matters": [
                {"MatterId": 7001, "InstructionRef": "HLX-500-12", "DisplayNumber": "SMITH-0001"}
            ],
            "PitchContent": [
                {"PitchContentId": 21, "DealId": 9001, "ServiceDescription": "Contract review"}
            ],
            "TeamsBotActivityTracking": [
                {"Id": 1, "EnquiryId": 41, "CreatedAt": "2024-01-05T09:31:00"},
                {"Id": 2, "EnquiryId": 43, "CreatedAt": "2024-01-07T10:01:00"},
            ],
        },
    )
    return legacy, current
