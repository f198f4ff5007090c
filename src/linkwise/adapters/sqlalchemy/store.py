"""Reflection-based read-only store adapter on SQLAlchemy Core."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import MetaData, Table, and_, false, func, or_, select
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from linkwise.domain.closure.columns import ColumnResolver
from linkwise.domain.errors import QueryError
from linkwise.domain.fields import TIMESTAMP_FIELDS
from linkwise.domain.keys import KeyKind
from linkwise.domain.ports import Combine, MatchMode, QueryResult

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.engine import Engine
    from sqlalchemy.sql.schema import Column

    from linkwise.domain.closure.catalog import StoreCatalog, TableSpec
    from linkwise.domain.keys import KeyValue
    from linkwise.domain.model import StoreSource
    from linkwise.domain.ports import Constraint, Predicate, Row

    from .schema import SchemaCache

log = logging.getLogger(__name__)

_CASE_INSENSITIVE_KINDS = frozenset({KeyKind.EMAIL})


def _python_type(column: Column[object]) -> type | None:
    try:
        return column.type.python_type
    except NotImplementedError:
        return None


def _coerce(column: Column[object], value: KeyValue) -> object | None:
    """Convert a key value to the column's Python type, or ``None`` if impossible."""

    python_type = _python_type(column)
    if python_type is int:
        try:
            return int(value)
        except ValueError:
            return None
    if python_type is str:
        return str(value)
    return value


def _coerce_bound(column: Column[object], value: datetime) -> object:
    python_type = _python_type(column)
    if python_type is str:
        return value.isoformat()
    if python_type is date:
        return value.date()
    return value


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlAlchemyStore:
    """One relational store, queried through reflected tables."""

    def __init__(
        self,
        *,
        source: StoreSource,
        engine: Engine,
        catalog: StoreCatalog,
        schema_cache: SchemaCache,
    ) -> None:
        self._source = source
        self._engine = engine
        self._catalog = catalog
        self._schema_cache = schema_cache

    @property
    def source(self) -> StoreSource:
        return self._source

    @property
    def catalog(self) -> StoreCatalog:
        return self._catalog

    def resolver(self, table: str) -> ColumnResolver:
        reflected = self._table(table)
        spec = self._spec(table)
        return ColumnResolver(
            table=table,
            columns=tuple(column.name for column in reflected.columns),
            overrides=spec.key_columns if spec is not None else {},
        )

    def query(
        self,
        table: str,
        predicate: Predicate,
        *,
        limit: int | None = None,
    ) -> QueryResult:
        resolver = self.resolver(table)
        reflected = self._table(table)
        missing = tuple(kind for kind in predicate.kinds if resolver.column_for(kind) is None)
        if missing and predicate.combine is Combine.ALL:
            return QueryResult.not_applicable(table, missing)

        clauses: list[ColumnElement[bool]] = []
        for constraint in predicate.constraints:
            column_name = resolver.column_for(constraint.kind)
            if column_name is None:
                continue
            clauses.append(self._clause(reflected.c[column_name], constraint))
        if not clauses:
            return QueryResult.not_applicable(table, missing)

        condition = and_(*clauses) if predicate.combine is Combine.ALL else or_(*clauses)
        statement = self._ordered(select(reflected).where(condition), reflected)
        if limit is not None:
            statement = statement.limit(limit)
        rows = self._execute(table, statement)
        log.debug("%s.%s: %d row(s) for %s", self._source, table, len(rows), predicate.kinds)
        return QueryResult(table=table, rows=rows, missing_kinds=missing)

    def fetch(
        self,
        table: str,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = None,
        time_fields: tuple[str, ...] = TIMESTAMP_FIELDS,
    ) -> list[Row]:
        """Rows of ``table``, most recent first, optionally inside ``[start, end]``."""

        reflected = self._table(table)
        resolver = self.resolver(table)
        time_column_name = resolver.resolve_field(time_fields)
        statement = select(reflected)
        if time_column_name is None:
            if start is not None or end is not None:
                raise QueryError(table, "no timestamp column to apply the time window to")
            statement = self._ordered(statement, reflected)
        else:
            time_column = reflected.c[time_column_name]
            if start is not None:
                statement = statement.where(time_column >= _coerce_bound(time_column, start))
            if end is not None:
                statement = statement.where(time_column <= _coerce_bound(time_column, end))
            statement = statement.order_by(time_column.desc())
        if limit is not None:
            statement = statement.limit(limit)
        return list(self._execute(table, statement))

    def _clause(self, column: Column[object], constraint: Constraint) -> ColumnElement[bool]:
        if constraint.mode is MatchMode.CONTAINS:
            patterns = [f"%{_escape_like(str(value).casefold())}%" for value in constraint.values]
            return or_(
                *(func.lower(column).like(pattern, escape="\\") for pattern in patterns)
            )

        if constraint.kind in _CASE_INSENSITIVE_KINDS:
            values = sorted({str(value).casefold() for value in constraint.values})
            return func.lower(column).in_(values)

        coerced: list[object] = []
        for value in constraint.values:
            converted = _coerce(column, value)
            if converted is None:
                log.debug("Dropping %r: not comparable with %s", value, column)
                continue
            if converted not in coerced:
                coerced.append(converted)
        if not coerced:
            return false()
        return column.in_(coerced)

    def _ordered(self, statement: Select[Any], reflected: Table) -> Select[Any]:
        spec = self._spec(reflected.name)
        if spec is None:
            return statement
        columns = [reflected.c[name] for name in spec.order_by if name in reflected.c]
        return statement.order_by(*(column.desc() for column in columns))

    def _execute(self, table: str, statement: Select[Any]) -> tuple[Row, ...]:
        try:
            with self._engine.connect() as connection:
                result = connection.execute(statement)
                return tuple(dict(row) for row in result.mappings())
        except (SQLAlchemyError, OverflowError, ValueError, TypeError) as exc:
            lines = str(exc).strip().splitlines()
            raise QueryError(table, lines[0] if lines else type(exc).__name__) from exc

    def _spec(self, table: str) -> TableSpec | None:
        try:
            return self._catalog.spec(table)
        except KeyError:
            return None

    def _table(self, table: str) -> Table:
        def load() -> Table:
            try:
                return Table(table, MetaData(), autoload_with=self._engine)
            except NoSuchTableError as exc:
                raise QueryError(table, "table does not exist") from exc
            except SQLAlchemyError as exc:
                raise QueryError(table, f"reflection failed: {exc}") from exc

        return self._schema_cache.get(self._source, table, load)
