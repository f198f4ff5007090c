"""Collection of distinct records discovered during closure expansion."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from linkwise.domain.keys import KeySet
from linkwise.domain.model import Record, WarningLog

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .graph import TableRef


def record_identity(record: Record, *, unique_primary_key: bool = True) -> str:
    """Primary-key value when present and unique, otherwise the full field content."""

    if unique_primary_key and record.id_text:
        return f"pk:{record.id_text}"
    return "row:" + json.dumps(record.fields, sort_keys=True, default=str)


@dataclass(slots=True)
class Closure:
    """Records grouped by ``source.table``, the keys that found them, and warnings."""

    records_by_table: dict[str, list[Record]] = field(default_factory=dict[str, list[Record]])
    keys: KeySet = field(default_factory=KeySet)
    warnings: WarningLog = field(default_factory=WarningLog)

    @property
    def record_count(self) -> int:
        return sum(len(records) for records in self.records_by_table.values())

    def is_empty(self) -> bool:
        return self.record_count == 0

    def records(self, table: str) -> list[Record]:
        return list(self.records_by_table.get(table, ()))


@dataclass(slots=True)
class RecordAggregator:
    """Accumulate records into a ``Closure``, once per table identity."""

    closure: Closure = field(default_factory=Closure)
    _seen: dict[str, set[str]] = field(default_factory=dict[str, set[str]], repr=False)

    def collect(
        self,
        table: TableRef,
        records: Iterable[Record],
        *,
        unique_primary_key: bool = True,
    ) -> list[Record]:
        """Add ``records`` found in ``table`` and return the ones not seen before.

        Tables whose primary key is shared by distinct rows are compared on
        full content instead.
        """

        name = str(table)
        seen = self._seen.setdefault(name, set())
        added: list[Record] = []
        for record in records:
            identity = record_identity(record, unique_primary_key=unique_primary_key)
            if identity in seen:
                continue
            seen.add(identity)
            added.append(record)
        if added:
            self.closure.records_by_table.setdefault(name, []).extend(added)
        return added
