"""Alias-tolerant mapping from logical key kinds to a table's real columns.

Column names drift between the two stores and across historical schema
versions (``InstructionRef``, ``instruction_ref``, ``Display Number``), so a
``ColumnResolver`` compares names after stripping spaces and underscores and
case-folding. Per-table overrides replace the global aliases for one kind; an
empty override disables that kind for the table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from linkwise.domain.fields import FIRST_NAME_FIELDS, FULL_NAME_FIELDS, LAST_NAME_FIELDS
from linkwise.domain.keys import IDENTITY_KINDS, KeyKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

KIND_ALIASES: Final[dict[KeyKind, tuple[str, ...]]] = {
    KeyKind.INSTRUCTION_REF: ("InstructionRef", "InstructionReference"),
    KeyKind.PROSPECT_ID: ("ProspectId", "acid"),
    KeyKind.PASSCODE: ("Passcode",),
    KeyKind.EMAIL: ("Email", "ClientEmail"),
    KeyKind.DEAL_ID: ("DealId",),
    KeyKind.MATTER_ID: ("MatterId",),
    KeyKind.DISPLAY_NUMBER: ("DisplayNumber",),
    KeyKind.ENQUIRY_ID: ("EnquiryId",),
    KeyKind.FIRST_NAME: FIRST_NAME_FIELDS,
    KeyKind.LAST_NAME: LAST_NAME_FIELDS,
    KeyKind.FULL_NAME: FULL_NAME_FIELDS,
}


def normalize_column_name(name: str) -> str:
    return name.replace(" ", "").replace("_", "").casefold()


@dataclass(frozen=True, slots=True)
class ColumnResolver:
    """Resolve key kinds to the actual columns of one table."""

    table: str
    columns: tuple[str, ...]
    overrides: Mapping[KeyKind, tuple[str, ...]] = field(
        default_factory=dict[KeyKind, tuple[str, ...]]
    )
    _by_normalized: dict[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_normalized: dict[str, str] = {}
        for column in self.columns:
            by_normalized.setdefault(normalize_column_name(column), column)
        object.__setattr__(self, "_by_normalized", by_normalized)

    def column_for(self, kind: KeyKind) -> str | None:
        """Return the column holding ``kind``, or ``None`` when the table has none."""

        aliases = self.overrides.get(kind, KIND_ALIASES.get(kind, ()))
        return self.resolve_field(aliases)

    def resolve_field(self, aliases: Iterable[str]) -> str | None:
        for alias in aliases:
            column = self._by_normalized.get(normalize_column_name(alias))
            if column is not None:
                return column
        return None

    def key_columns(self, kinds: Iterable[KeyKind] = IDENTITY_KINDS) -> dict[KeyKind, str]:
        """Map every resolvable kind in ``kinds`` to its column, in enum order."""

        wanted = set(kinds)
        resolved: dict[KeyKind, str] = {}
        for kind in KeyKind:
            if kind not in wanted:
                continue
            column = self.column_for(kind)
            if column is not None:
                resolved[kind] = column
        return resolved

    def has_column(self, name: str) -> bool:
        return normalize_column_name(name) in self._by_normalized
