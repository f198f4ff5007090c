"""Typed lookup keys and the deduplicated key set grown during expansion."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from .errors import ParseError
from .fields import normalize_name

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


class KeyKind(StrEnum):
    """Logical identifier kinds, independent of any table's column names."""

    INSTRUCTION_REF = "InstructionRef"
    PROSPECT_ID = "ProspectId"
    PASSCODE = "Passcode"
    EMAIL = "Email"
    DEAL_ID = "DealId"
    MATTER_ID = "MatterId"
    DISPLAY_NUMBER = "DisplayNumber"
    ENQUIRY_ID = "EnquiryId"
    FIRST_NAME = "FirstName"
    LAST_NAME = "LastName"
    FULL_NAME = "FullName"


NUMERIC_KINDS: Final[frozenset[KeyKind]] = frozenset(
    {KeyKind.PROSPECT_ID, KeyKind.DEAL_ID, KeyKind.MATTER_ID, KeyKind.ENQUIRY_ID}
)
NAME_KINDS: Final[frozenset[KeyKind]] = frozenset(
    {KeyKind.FIRST_NAME, KeyKind.LAST_NAME, KeyKind.FULL_NAME}
)
IDENTITY_KINDS: Final[frozenset[KeyKind]] = frozenset(set(KeyKind) - NAME_KINDS)

type KeyValue = str | int


def _parse_int(kind: KeyKind, value: object) -> int:
    if isinstance(value, bool):
        raise ParseError(kind.value, value, "boolean is not an identifier")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ParseError(kind.value, value, "not an integer")
        return int(value)
    if isinstance(value, Decimal):
        if value != value.to_integral_value():
            raise ParseError(kind.value, value, "not an integer")
        return int(value)
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    raise ParseError(kind.value, value, "not numeric")


def normalize_key_value(kind: KeyKind, value: object) -> KeyValue:
    """Normalize a raw column or seed value for ``kind``.

    Raises ``ParseError`` when the value cannot serve as a key of that kind.
    """

    if value is None:
        raise ParseError(kind.value, value, "missing")
    if kind in NUMERIC_KINDS:
        return _parse_int(kind, value)
    text = str(value).strip()
    if not text:
        raise ParseError(kind.value, value, "blank")
    if kind is KeyKind.EMAIL:
        if "@" not in text:
            raise ParseError(kind.value, value, "not an email address")
        return text.casefold()
    if kind is KeyKind.INSTRUCTION_REF:
        return text.upper()
    if kind in NAME_KINDS:
        return normalize_name(text)
    return text


@dataclass(frozen=True, slots=True)
class Key:
    kind: KeyKind
    value: KeyValue

    @classmethod
    def of(cls, kind: KeyKind, raw: object) -> Key:
        return cls(kind=kind, value=normalize_key_value(kind, raw))

    def __str__(self) -> str:
        return f"{self.kind.value}={self.value}"


@dataclass(slots=True)
class KeySet:
    """Insertion-ordered set of keys, deduplicated by ``(kind, value)``."""

    _keys: dict[Key, None] = field(default_factory=dict["Key", None], repr=False)

    @classmethod
    def of(cls, keys: Iterable[Key]) -> KeySet:
        key_set = cls()
        key_set.update(keys)
        return key_set

    def add(self, key: Key) -> bool:
        """Add ``key``; return whether it was new."""

        if key in self._keys:
            return False
        self._keys[key] = None
        return True

    def update(self, keys: Iterable[Key]) -> list[Key]:
        """Add every key and return the ones that were new, in order."""

        return [key for key in keys if self.add(key)]

    def as_dict(self) -> dict[str, list[KeyValue]]:
        grouped: dict[str, list[KeyValue]] = {}
        for key in self._keys:
            grouped.setdefault(key.kind.value, []).append(key.value)
        return grouped

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __iter__(self) -> Iterator[Key]:
        return iter(tuple(self._keys))

    def __len__(self) -> int:
        return len(self._keys)
