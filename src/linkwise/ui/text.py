"""Plain-text dump of a resolved entity closure."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from linkwise.domain.closure.expand import ExpansionResult
    from linkwise.domain.model import Record

_INDENT = "  "


def _record_line(record: Record) -> str:
    parts = [
        f"{name}={value}"
        for name, value in record.fields.items()
        if value is not None and str(value).strip()
    ]
    return f"{_INDENT}- " + ", ".join(parts)


def render_closure(result: ExpansionResult) -> str:
    lines = [
        f"Seed: {result.seed.raw} ({result.seed.kind})",
        f"Stopped: {result.stop_reason} after {result.passes} pass(es)",
        "",
        f"Keys ({len(result.keys)})",
    ]
    lines.extend(
        f"{_INDENT}{kind}: {', '.join(str(value) for value in values)}"
        for kind, values in result.keys.as_dict().items()
    )

    for table, records in result.closure.records_by_table.items():
        lines.append("")
        lines.append(f"{table} ({len(records)})")
        lines.extend(_record_line(record) for record in records)

    if result.closure.is_empty():
        lines.append("")
        lines.append("No records found.")

    warnings = result.warnings
    if warnings:
        lines.append("")
        lines.append(f"Warnings ({len(warnings)})")
        lines.extend(f"{_INDENT}- {warning}" for warning in warnings)
    return "\n".join(lines) + "\n"
