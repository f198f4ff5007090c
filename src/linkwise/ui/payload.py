"""JSON-ready payload for a reconciliation run."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from linkwise.domain.model import LookupWarning, Record
    from linkwise.domain.reconciliation import MigrationStats, ReconciliationResult

type JSONValue = None | bool | int | float | str | list[JSONValue] | dict[str, JSONValue]


def _json_value(value: object) -> JSONValue:
    if value is None or isinstance(value, bool | int | float | str):
        return value
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, bytes):
        return value.hex()
    return str(value)


def record_payload(record: Record) -> dict[str, JSONValue]:
    return {name: _json_value(value) for name, value in record.as_dict().items()}


def migration_payload(
    stats: MigrationStats, cross_reference_map: dict[str, str]
) -> dict[str, JSONValue]:
    return {
        "total": stats.total,
        "migrated": stats.migrated,
        "partial": stats.partial,
        "notMigrated": stats.not_migrated,
        "notChecked": stats.not_checked,
        "instructionsOnly": stats.instructions_only,
        "migrationRate": stats.migration_rate,
        "crossReferenceMap": dict(cross_reference_map),
    }


def reconciliation_payload(
    result: ReconciliationResult,
    warnings: Iterable[LookupWarning] = (),
) -> dict[str, JSONValue]:
    enquiries: list[JSONValue] = [record_payload(record) for record in result.records]
    return {
        "enquiries": enquiries,
        "count": len(enquiries),
        "sources": {
            "main": result.legacy_count,
            "instructions": result.current_count,
            "unique": len(enquiries),
        },
        "warnings": [str(warning) for warning in warnings],
        "migration": migration_payload(result.stats, result.cross_reference_map),
    }
