from __future__ import annotations

from linkwise.domain.closure import resolve_entity_closure
from linkwise.ui.text import render_closure
from tests.support.stores import linked_entity_stores


def test_render_lists_keys_and_records_per_table() -> None:
    result = resolve_entity_closure("HLX-500-12", linked_entity_stores())

    text = render_closure(result)

    assert text.splitlines()[:4] == [
        "Seed: HLX-500-12 (compound-reference)",
        "Stopped: fixpoint after 2 pass(es)",
        "",
        "Keys (8)",
    ]
    assert "  InstructionRef: HLX-500-12" in text
    assert "legacy.enquiries (1)" in text
    assert "  - DealId=9001, InstructionRef=HLX-500-12, ProspectId=500, Passcode=12" in text
    assert "Warnings" not in text


def test_render_skips_blank_fields() -> None:
    result = resolve_entity_closure("team@example.com", linked_entity_stores())

    text = render_closure(result)

    assert "acid" not in text
    assert "  - id=43, first=Carol, last=White, email=team@example.com" in text


def test_render_empty_closure_with_warnings() -> None:
    result = resolve_entity_closure("Zed", linked_entity_stores())

    text = render_closure(result)

    assert "Stopped: no-seed-keys after 0 pass(es)" in text
    assert "Keys (0)" in text
    assert "No records found." in text
    assert text.endswith("Warnings (1)\n  - [lookup] no records found for 'Zed'\n")
