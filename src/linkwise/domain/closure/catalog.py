"""Static description of the tables each store exposes to closure resolution.

The catalog names tables, their primary keys and per-table column overrides;
which key kinds a table actually carries is decided at run time by
introspecting its columns through a ``ColumnResolver``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from linkwise.domain.keys import KeyKind
from linkwise.domain.model import StoreSource

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class TableSpec:
    name: str
    primary_key: str = ""
    key_columns: Mapping[KeyKind, tuple[str, ...]] = field(
        default_factory=dict[KeyKind, tuple[str, ...]]
    )
    order_by: tuple[str, ...] = ()
    primary_entity: bool = False
    unique_primary_key: bool = True


@dataclass(frozen=True, slots=True)
class CrossReference:
    """Two-hop lookup: ``from_kind`` values → ``table`` rows → ``to_column`` as ``to_kind``.

    Used for tables keyed by an intermediate id that no seed carries directly.
    """

    name: str
    table: str
    from_kind: KeyKind
    to_kind: KeyKind
    to_column: str


@dataclass(frozen=True, slots=True)
class StoreCatalog:
    source: StoreSource
    tables: tuple[TableSpec, ...]
    cross_references: tuple[CrossReference, ...] = ()

    def spec(self, table: str) -> TableSpec:
        for spec in self.tables:
            if spec.name == table:
                return spec
        raise KeyError(f"Table {table!r} is not part of the {self.source} catalog")


LEGACY_CATALOG: Final[StoreCatalog] = StoreCatalog(
    source=StoreSource.LEGACY,
    tables=(
        TableSpec(
            name="enquiries",
            primary_key="ID",
            key_columns={KeyKind.PROSPECT_ID: ("ID",)},
            order_by=("ID",),
            primary_entity=True,
            unique_primary_key=False,
        ),
    ),
)

CURRENT_CATALOG: Final[StoreCatalog] = StoreCatalog(
    source=StoreSource.CURRENT,
    tables=(
        TableSpec(
            name="enquiries",
            primary_key="id",
            key_columns={KeyKind.PROSPECT_ID: ("acid",)},
            order_by=("datetime", "id"),
            primary_entity=True,
        ),
        TableSpec(name="Deals", primary_key="DealId", order_by=("DealId",)),
        TableSpec(name="Instructions", primary_key="InstructionRef", order_by=("InstructionRef",)),
        TableSpec(name="Matters", primary_key="MatterId", order_by=("OpenDate",)),
        TableSpec(name="Payments", primary_key="id", order_by=("id",)),
        TableSpec(name="Documents", primary_key="DocumentId", order_by=("DocumentId",)),
        TableSpec(name="RiskAssessment"),
        TableSpec(name="IDVerifications", primary_key="InternalId", order_by=("EIDCheckedDate",)),
        TableSpec(name="PitchContent", primary_key="PitchContentId", order_by=("PitchContentId",)),
        TableSpec(name="TeamsBotActivityTracking", primary_key="Id", order_by=("CreatedAt",)),
    ),
    cross_references=(
        CrossReference(
            name="enquiry-by-legacy-id",
            table="enquiries",
            from_kind=KeyKind.PROSPECT_ID,
            to_kind=KeyKind.ENQUIRY_ID,
            to_column="id",
        ),
    ),
)

DEFAULT_CATALOGS: Final[dict[StoreSource, StoreCatalog]] = {
    StoreSource.LEGACY: LEGACY_CATALOG,
    StoreSource.CURRENT: CURRENT_CATALOG,
}
