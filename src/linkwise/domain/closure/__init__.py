"""Entity closure resolution across both stores.

Flow:
1) classify the seed into initial keys (or run a name search)
2) introspect every catalogued table into a key graph
3) expand the frontier pass by pass, aggregating records and harvesting keys
4) stop at a fixpoint, the pass cap or the deadline
"""

from __future__ import annotations

from .aggregate import Closure, RecordAggregator
from .catalog import (
    CURRENT_CATALOG,
    DEFAULT_CATALOGS,
    LEGACY_CATALOG,
    CrossReference,
    StoreCatalog,
    TableSpec,
)
from .columns import ColumnResolver
from .expand import ExpansionResult, KeyExpander, StopReason, resolve_entity_closure
from .graph import KeyGraph, TableRef

__all__ = [
    "CURRENT_CATALOG",
    "DEFAULT_CATALOGS",
    "LEGACY_CATALOG",
    "Closure",
    "ColumnResolver",
    "CrossReference",
    "ExpansionResult",
    "KeyExpander",
    "KeyGraph",
    "RecordAggregator",
    "StopReason",
    "StoreCatalog",
    "TableRef",
    "TableSpec",
    "resolve_entity_closure",
]
