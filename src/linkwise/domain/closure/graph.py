"""Directed graph of key kinds that drives closure expansion.

Nodes are key kinds. A table carrying kinds ``A`` and ``B`` links them both
ways: querying it by one kind yields values of the other. ``consumers`` gives
the tables a kind leads into and ``columns`` the kinds a table yields. Cross
references add one more outgoing kind to their table.
Expansion walks this graph instead of hard-coding which table feeds which.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from linkwise.domain.keys import KeyKind
    from linkwise.domain.model import StoreSource

    from .catalog import CrossReference, TableSpec


@dataclass(frozen=True, slots=True, order=True)
class TableRef:
    source: StoreSource
    name: str

    def __str__(self) -> str:
        return f"{self.source}.{self.name}"


@dataclass(slots=True)
class KeyGraph:
    """Tables, the key columns they carry, and the cross references between kinds."""

    _specs: dict[TableRef, TableSpec] = field(default_factory=dict["TableRef", "TableSpec"])
    _columns: dict[TableRef, dict[KeyKind, str]] = field(
        default_factory=dict["TableRef", "dict[KeyKind, str]"]
    )
    _cross_references: list[tuple[TableRef, CrossReference]] = field(
        default_factory=list["tuple[TableRef, CrossReference]"]
    )

    def add_table(self, table: TableRef, spec: TableSpec, columns: Mapping[KeyKind, str]) -> None:
        self._specs[table] = spec
        self._columns[table] = dict(columns)

    def add_cross_reference(self, table: TableRef, reference: CrossReference) -> None:
        if table not in self._columns:
            raise ValueError(f"Cross reference {reference.name} targets unknown table {table}")
        if reference.from_kind not in self._columns[table]:
            raise ValueError(
                f"Cross reference {reference.name}: {table} has no column for "
                f"{reference.from_kind}"
            )
        self._cross_references.append((table, reference))

    @property
    def tables(self) -> tuple[TableRef, ...]:
        return tuple(self._columns)

    def spec(self, table: TableRef) -> TableSpec:
        return self._specs[table]

    def columns(self, table: TableRef) -> dict[KeyKind, str]:
        return dict(self._columns[table])

    def consumers(self, kind: KeyKind) -> tuple[TableRef, ...]:
        """Tables that can be queried by ``kind``."""

        return tuple(table for table, columns in self._columns.items() if kind in columns)

    def cross_references_on(self, table: TableRef) -> tuple[CrossReference, ...]:
        return tuple(
            reference for ref_table, reference in self._cross_references if ref_table == table
        )

