"""Store adapter port consumed by reconciliation and closure resolution."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .fields import TIMESTAMP_FIELDS

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from .closure.catalog import StoreCatalog
    from .closure.columns import ColumnResolver
    from .keys import KeyKind, KeyValue
    from .model import StoreSource

type Row = Mapping[str, object]


class MatchMode(StrEnum):
    EXACT = "exact"
    CONTAINS = "contains"


class Combine(StrEnum):
    ANY = "any"
    ALL = "all"


@dataclass(frozen=True, slots=True)
class Constraint:
    """Allowed values for one key kind; the adapter picks the column."""

    kind: KeyKind
    values: tuple[KeyValue, ...]
    mode: MatchMode = MatchMode.EXACT


@dataclass(frozen=True, slots=True)
class Predicate:
    """Constraints combined with ``any`` (OR) or ``all`` (AND)."""

    constraints: tuple[Constraint, ...]
    combine: Combine = Combine.ANY

    @classmethod
    def values_in(cls, kind: KeyKind, values: tuple[KeyValue, ...]) -> Predicate:
        return cls(constraints=(Constraint(kind=kind, values=values),))

    @classmethod
    def any_of(cls, *constraints: Constraint) -> Predicate:
        return cls(constraints=constraints, combine=Combine.ANY)

    @classmethod
    def all_of(cls, *constraints: Constraint) -> Predicate:
        return cls(constraints=constraints, combine=Combine.ALL)

    @property
    def kinds(self) -> tuple[KeyKind, ...]:
        return tuple(constraint.kind for constraint in self.constraints)


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Rows returned for one table, or a report that the predicate does not apply.

    A table lacking a column for a constrained kind is not an error: the
    adapter returns ``applicable=False`` and names the missing kinds.
    """

    table: str
    rows: tuple[Row, ...] = ()
    applicable: bool = True
    missing_kinds: tuple[KeyKind, ...] = ()

    @classmethod
    def not_applicable(cls, table: str, missing: tuple[KeyKind, ...]) -> QueryResult:
        return cls(table=table, applicable=False, missing_kinds=missing)


@runtime_checkable
class StoreAdapter(Protocol):
    """Read-only access to one relational store."""

    @property
    def source(self) -> StoreSource: ...

    @property
    def catalog(self) -> StoreCatalog: ...

    def resolver(self, table: str) -> ColumnResolver:
        """Introspect ``table``; raise ``QueryError`` when that fails."""
        ...

    def query(
        self,
        table: str,
        predicate: Predicate,
        *,
        limit: int | None = None,
    ) -> QueryResult: ...

    def fetch(
        self,
        table: str,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = None,
        time_fields: tuple[str, ...] = TIMESTAMP_FIELDS,
    ) -> list[Row]: ...


__all__ = [
    "Combine",
    "Constraint",
    "MatchMode",
    "Predicate",
    "QueryResult",
    "Row",
    "StoreAdapter",
]
