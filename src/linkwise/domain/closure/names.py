"""Name-search predicates and the exact-name filter for name-seeded lookups."""

from __future__ import annotations

from typing import TYPE_CHECKING

from linkwise.domain.fields import name_variants
from linkwise.domain.keys import KeyKind
from linkwise.domain.ports import Constraint, MatchMode, Predicate

if TYPE_CHECKING:
    from collections.abc import Sequence

    from linkwise.domain.model import Record


def _contains(kind: KeyKind, value: str) -> Constraint:
    return Constraint(kind=kind, values=(value,), mode=MatchMode.CONTAINS)


def name_search_predicates(name: str) -> tuple[Predicate, ...]:
    """Predicates whose union finds every candidate row for ``name``.

    One word matches any name column. Several words match first and last name
    in either order, or the full-name column containing the whole name. Each
    predicate is issued separately so a table lacking a full-name column still
    answers the first/last variants.
    """

    tokens = name.split()
    if not tokens:
        return ()
    if len(tokens) == 1:
        (token,) = tokens
        return (
            Predicate.any_of(
                _contains(KeyKind.FIRST_NAME, token),
                _contains(KeyKind.LAST_NAME, token),
                _contains(KeyKind.FULL_NAME, token),
            ),
        )
    first, rest = tokens[0], " ".join(tokens[1:])
    last, leading = tokens[-1], " ".join(tokens[:-1])
    return (
        Predicate.all_of(
            _contains(KeyKind.FIRST_NAME, first),
            _contains(KeyKind.LAST_NAME, rest),
        ),
        Predicate.all_of(
            _contains(KeyKind.FIRST_NAME, last),
            _contains(KeyKind.LAST_NAME, leading),
        ),
        Predicate.any_of(_contains(KeyKind.FULL_NAME, name)),
    )


def matches_name(record: Record, name: str) -> bool:
    return name in name_variants(record.fields)


def filter_exact_name(records: Sequence[Record], name: str) -> list[Record]:
    return [record for record in records if matches_name(record, name)]
