"""Iterative multi-key expansion from a seed to the closure of linked records.

Each pass queries, for every key first seen in the previous pass, every table
of both stores that carries a column of that key's kind. Rows feed the
``RecordAggregator`` and are harvested for further keys. The loop ends at a
fixpoint (a pass adds no key) or when a pass cap or the wall-clock deadline is
reached. Queries inside one pass run concurrently on a per-run thread pool;
their results are processed in task order so runs are reproducible.
"""

from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import StrEnum
from functools import partial
from typing import TYPE_CHECKING, Final

from linkwise.config.expansion import ExpansionLimits
from linkwise.domain.errors import ParseError, QueryError
from linkwise.domain.keys import Key, KeyKind
from linkwise.domain.model import Record
from linkwise.domain.ports import Predicate
from linkwise.domain.seeds import Seed, SeedKind, classify_seed

from .aggregate import Closure, RecordAggregator, record_identity
from .graph import KeyGraph, TableRef
from .names import filter_exact_name, name_search_predicates

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from linkwise.domain.keys import KeySet, KeyValue
    from linkwise.domain.model import LookupWarning, StoreSource
    from linkwise.domain.ports import QueryResult, Row, StoreAdapter

    from .catalog import CrossReference, TableSpec

log = logging.getLogger(__name__)

IN_CLAUSE_CHUNK_SIZE: Final[int] = 500


class StopReason(StrEnum):
    FIXPOINT = "fixpoint"
    MAX_PASSES = "max-passes"
    DEADLINE = "deadline"
    NO_SEED_KEYS = "no-seed-keys"


@dataclass(frozen=True, slots=True)
class ExpansionResult:
    seed: Seed
    closure: Closure
    passes: int
    stop_reason: StopReason

    @property
    def keys(self) -> KeySet:
        return self.closure.keys

    @property
    def warnings(self) -> tuple[LookupWarning, ...]:
        return tuple(self.closure.warnings)


@dataclass(frozen=True, slots=True)
class _QueryTask:
    table: TableRef
    predicate: Predicate
    label: str


@dataclass(frozen=True, slots=True)
class _Outcome[T]:
    value: T | None = None
    error: str | None = None


@dataclass(slots=True)
class _Run:
    """Mutable state of one expansion run."""

    seed: Seed
    deadline: float
    graph: KeyGraph = field(default_factory=KeyGraph)
    aggregator: RecordAggregator = field(default_factory=RecordAggregator)
    pk_origins: dict[Key, set[TableRef]] = field(default_factory=dict[Key, set[TableRef]])

    @property
    def closure(self) -> Closure:
        return self.aggregator.closure

    def warn(self, source: object, message: str) -> None:
        log.warning("%s: %s", source, message)
        self.closure.warnings.add(str(source), message)


def _chunks(values: Sequence[KeyValue], size: int) -> Iterable[tuple[KeyValue, ...]]:
    for start in range(0, len(values), size):
        yield tuple(values[start : start + size])


class KeyExpander:
    """Resolve a seed into every linked record across the given stores."""

    def __init__(
        self,
        stores: Sequence[StoreAdapter],
        *,
        limits: ExpansionLimits | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._stores: dict[StoreSource, StoreAdapter] = {store.source: store for store in stores}
        self._limits = limits or ExpansionLimits()
        self._clock = clock

    @property
    def limits(self) -> ExpansionLimits:
        return self._limits

    def expand(self, seed: Seed) -> ExpansionResult:
        return asyncio.run(self._expand_async(seed))

    async def _expand_async(self, seed: Seed) -> ExpansionResult:
        run = _Run(seed=seed, deadline=self._clock() + self._limits.deadline_seconds)
        executor = ThreadPoolExecutor(thread_name_prefix="linkwise-query")
        try:
            await self._build_graph(run, executor)
            frontier = run.closure.keys.update(seed.keys)
            if seed.kind is SeedKind.NAME and seed.name:
                frontier.extend(await self._name_search(run, executor, seed.name))
            elif seed.kind is SeedKind.UNRECOGNIZED:
                run.warn("seed", f"{seed.raw!r} is not a recognizable identifier")

            if not frontier:
                self._warn_if_empty(run)
                stop_reason = (
                    StopReason.NO_SEED_KEYS if run.closure.is_empty() else StopReason.FIXPOINT
                )
                return ExpansionResult(
                    seed=seed, closure=run.closure, passes=0, stop_reason=stop_reason
                )

            passes, stop_reason = await self._expand_frontier(run, executor, frontier)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        self._warn_if_empty(run)
        log.info(
            "Expansion of %r stopped after %d pass(es) (%s): %d key(s), %d record(s)",
            seed.raw,
            passes,
            stop_reason,
            len(run.closure.keys),
            run.closure.record_count,
        )
        return ExpansionResult(
            seed=seed, closure=run.closure, passes=passes, stop_reason=stop_reason
        )

    async def _expand_frontier(
        self,
        run: _Run,
        executor: ThreadPoolExecutor,
        frontier: list[Key],
    ) -> tuple[int, StopReason]:
        passes = 0
        while frontier:
            if passes >= self._limits.max_passes:
                run.warn(
                    "expansion",
                    f"stopped after {passes} passes with {len(frontier)} key(s) unexplored",
                )
                return passes, StopReason.MAX_PASSES
            if self._clock() >= run.deadline:
                run.warn("expansion", f"deadline reached after {passes} pass(es)")
                return passes, StopReason.DEADLINE

            passes += 1
            tasks = self._tasks_for(run, frontier)
            outcomes = await self._run_queries(run, executor, tasks)
            new_keys: list[Key] = []
            new_records = 0
            for task, outcome in zip(tasks, outcomes, strict=True):
                if outcome.error is not None:
                    run.warn(task.table, f"{task.label}: {outcome.error}")
                    continue
                if outcome.value is None or not outcome.value.applicable:
                    continue
                self._warn_if_truncated(run, task, outcome.value)
                records = self._collect(run, task.table, outcome.value.rows)
                new_records += len(records)
                new_keys.extend(self._harvest(run, task.table, records))
            log.info(
                "Pass %d: %d quer(ies), %d new record(s), %d new key(s)",
                passes,
                len(tasks),
                new_records,
                len(new_keys),
            )
            frontier = new_keys
        return passes, StopReason.FIXPOINT

    async def _build_graph(self, run: _Run, executor: ThreadPoolExecutor) -> None:
        specs: list[tuple[StoreAdapter, TableSpec]] = [
            (store, spec) for store in self._stores.values() for spec in store.catalog.tables
        ]
        outcomes = await self._run_calls(
            run, executor, [partial(store.resolver, spec.name) for store, spec in specs]
        )
        for (store, spec), outcome in zip(specs, outcomes, strict=True):
            table = TableRef(store.source, spec.name)
            if outcome.error is not None or outcome.value is None:
                run.warn(table, f"column introspection failed: {outcome.error}")
                continue
            run.graph.add_table(table, spec, outcome.value.key_columns())

        for store in self._stores.values():
            for reference in store.catalog.cross_references:
                table = TableRef(store.source, reference.table)
                if table not in run.graph.tables:
                    continue
                try:
                    run.graph.add_cross_reference(table, reference)
                except ValueError as exc:
                    run.warn(table, str(exc))

    async def _name_search(
        self, run: _Run, executor: ThreadPoolExecutor, name: str
    ) -> list[Key]:
        tasks = [
            _QueryTask(table=table, predicate=predicate, label=f"name search {name!r}")
            for table in run.graph.tables
            if run.graph.spec(table).primary_entity
            for predicate in name_search_predicates(name)
        ]
        outcomes = await self._run_queries(run, executor, tasks)

        found: dict[TableRef, list[Record]] = {}
        seen: set[tuple[TableRef, str]] = set()
        for task, outcome in zip(tasks, outcomes, strict=True):
            if outcome.error is not None:
                run.warn(task.table, f"{task.label}: {outcome.error}")
                continue
            if outcome.value is None or not outcome.value.applicable:
                log.debug("%s has no column for %s", task.table, task.predicate.kinds)
                continue
            self._warn_if_truncated(run, task, outcome.value)
            bucket = found.setdefault(task.table, [])
            for row in outcome.value.rows:
                record = self._record(run, task.table, row)
                marker = (
                    task.table,
                    record_identity(
                        record,
                        unique_primary_key=run.graph.spec(task.table).unique_primary_key,
                    ),
                )
                if marker in seen:
                    continue
                seen.add(marker)
                bucket.append(record)

        candidates = [record for records in found.values() for record in records]
        if run.seed.is_multi_word_name and candidates:
            retained = filter_exact_name(candidates, name)
            if not retained:
                run.warn(
                    "name search",
                    f"no exact match for {name!r}; keeping {len(candidates)} partial match(es)",
                )
                retained = candidates
        else:
            retained = candidates

        keep = {id(record) for record in retained}
        keys: list[Key] = []
        for table, records in found.items():
            collected = self._collect_records(
                run, table, [record for record in records if id(record) in keep]
            )
            keys.extend(self._harvest(run, table, collected))
        return keys

    def _tasks_for(self, run: _Run, frontier: Sequence[Key]) -> list[_QueryTask]:
        by_kind: dict[KeyKind, list[Key]] = {}
        for key in frontier:
            by_kind.setdefault(key.kind, []).append(key)

        tasks: list[_QueryTask] = []
        for kind, keys in by_kind.items():
            for table in run.graph.consumers(kind):
                values = [
                    key.value for key in keys if table not in run.pk_origins.get(key, ())
                ]
                for chunk in _chunks(values, IN_CLAUSE_CHUNK_SIZE):
                    tasks.append(
                        _QueryTask(
                            table=table,
                            predicate=Predicate.values_in(kind, chunk),
                            label=f"{kind} lookup",
                        )
                    )
        return tasks

    async def _run_queries(
        self,
        run: _Run,
        executor: ThreadPoolExecutor,
        tasks: Sequence[_QueryTask],
    ) -> list[_Outcome[QueryResult]]:
        return await self._run_calls(
            run,
            executor,
            [
                partial(
                    self._stores[task.table.source].query,
                    task.table.name,
                    task.predicate,
                    limit=self._limits.row_limit,
                )
                for task in tasks
            ],
        )

    async def _run_calls[T](
        self,
        run: _Run,
        executor: ThreadPoolExecutor,
        calls: Sequence[Callable[[], T]],
    ) -> list[_Outcome[T]]:
        """Run ``calls`` concurrently; outcomes come back in call order.

        Every call in one batch shares the same timeout, capped by what is left
        of the run deadline.
        """

        timeout = min(self._limits.query_timeout_seconds, run.deadline - self._clock())
        if timeout <= 0:
            return [_Outcome(error="skipped, deadline reached") for _ in calls]
        loop = asyncio.get_running_loop()
        return list(
            await asyncio.gather(
                *(
                    self._guarded(loop.run_in_executor(executor, call), timeout)
                    for call in calls
                )
            )
        )

    async def _guarded[T](self, future: asyncio.Future[T], timeout: float) -> _Outcome[T]:
        try:
            return _Outcome(value=await asyncio.wait_for(future, timeout=timeout))
        except TimeoutError:
            return _Outcome(error=f"timed out after {timeout:.1f}s")
        except QueryError as exc:
            return _Outcome(error=exc.message)
        except Exception as exc:
            log.debug("Store call failed", exc_info=True)
            return _Outcome(error=f"{type(exc).__name__}: {exc}")

    def _record(self, run: _Run, table: TableRef, row: Row) -> Record:
        spec = run.graph.spec(table)
        return Record(fields=dict(row), source=table.source, primary_key=spec.primary_key)

    def _collect(self, run: _Run, table: TableRef, rows: Iterable[Row]) -> list[Record]:
        return self._collect_records(run, table, [self._record(run, table, row) for row in rows])

    def _collect_records(self, run: _Run, table: TableRef, records: list[Record]) -> list[Record]:
        spec = run.graph.spec(table)
        return run.aggregator.collect(
            table, records, unique_primary_key=spec.unique_primary_key
        )

    def _harvest(self, run: _Run, table: TableRef, records: Sequence[Record]) -> list[Key]:
        """Add every key carried by ``records`` and return the new ones."""

        spec = run.graph.spec(table)
        columns = run.graph.columns(table)
        references = run.graph.cross_references_on(table)
        new_keys: list[Key] = []
        for record in records:
            for kind, column in columns.items():
                key = self._key_from(record, kind, column)
                if key is None:
                    continue
                if column == spec.primary_key and spec.unique_primary_key:
                    run.pk_origins.setdefault(key, set()).add(table)
                if run.closure.keys.add(key):
                    new_keys.append(key)
            for reference in references:
                key = self._cross_reference_key(record, reference, columns)
                if key is not None and run.closure.keys.add(key):
                    new_keys.append(key)
        return new_keys

    def _cross_reference_key(
        self, record: Record, reference: CrossReference, columns: dict[KeyKind, str]
    ) -> Key | None:
        if record.fields.get(columns[reference.from_kind]) in (None, ""):
            return None
        return self._key_from(record, reference.to_kind, reference.to_column)

    def _key_from(self, record: Record, kind: KeyKind, column: str) -> Key | None:
        value = record.fields.get(column)
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        try:
            key = Key.of(kind, value)
        except ParseError as exc:
            log.debug("Skipping %s value from %s: %s", kind, column, exc)
            return None
        if kind is KeyKind.EMAIL and self._is_shared_mailbox(str(key.value)):
            log.debug("Skipping shared mailbox %s", key.value)
            return None
        return key

    def _is_shared_mailbox(self, email: str) -> bool:
        return any(
            email.startswith(prefix.casefold()) for prefix in self._limits.shared_mailbox_prefixes
        )

    def _warn_if_truncated(self, run: _Run, task: _QueryTask, result: QueryResult) -> None:
        if len(result.rows) >= self._limits.row_limit:
            run.warn(
                task.table,
                f"{task.label}: row limit of {self._limits.row_limit} reached, "
                "results may be incomplete",
            )

    def _warn_if_empty(self, run: _Run) -> None:
        if run.closure.is_empty():
            run.warn("lookup", f"no records found for {run.seed.raw!r}")


def resolve_entity_closure(
    seed: str | Seed,
    stores: Sequence[StoreAdapter],
    *,
    limits: ExpansionLimits | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> ExpansionResult:
    """Classify ``seed`` when given as text and expand it to its closure."""

    if isinstance(seed, str):
        seed = classify_seed(seed)
    return KeyExpander(stores, limits=limits, clock=clock).expand(seed)
