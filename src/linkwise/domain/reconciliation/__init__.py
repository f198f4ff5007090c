"""Legacy to current enquiry reconciliation.

Flow:
1) build records from both stores' rows
2) exact matching on the legacy reference, then fuzzy contact matching
3) merge legacy records with unmatched current records and de-duplicate
4) compute migration statistics
"""

from __future__ import annotations

from .engine import ReconciliationResult, reconcile
from .matching import match_exact, match_fuzzy, match_records
from .merge import MergeResult, MigrationStats, dedup_key, deduplicate, merge

__all__ = [
    "MergeResult",
    "MigrationStats",
    "ReconciliationResult",
    "dedup_key",
    "deduplicate",
    "match_exact",
    "match_fuzzy",
    "match_records",
    "merge",
    "reconcile",
]
