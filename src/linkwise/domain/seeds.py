"""Classification of free-form lookup seeds into initial keys."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from .fields import normalize_name
from .keys import Key, KeyKind

DEFAULT_REFERENCE_PREFIX: Final[str] = "HLX"

_COMPOUND_REFERENCE = re.compile(r"^(?:([A-Z]+)-?)?(\d+)-(\d+)$", re.IGNORECASE)
_PREFIXED_REFERENCE = re.compile(r"^[A-Z]+-\d+-\d+$", re.IGNORECASE)
_DISPLAY_NUMBER = re.compile(r"^[A-Z][A-Z0-9]*-\d+$", re.IGNORECASE)
_LETTER = re.compile(r"[^\W\d_]")


class SeedKind(StrEnum):
    COMPOUND_REFERENCE = "compound-reference"
    NUMERIC = "numeric"
    EMAIL = "email"
    DISPLAY_NUMBER = "display-number"
    NAME = "name"
    KEYS = "keys"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True, slots=True)
class InstructionReference:
    instruction_ref: str
    prospect_id: str
    passcode: str


@dataclass(frozen=True, slots=True)
class Seed:
    """A classified seed: the raw input, its shape, and the keys it implies."""

    raw: str
    kind: SeedKind
    keys: tuple[Key, ...] = ()
    name: str | None = None

    @property
    def is_multi_word_name(self) -> bool:
        return self.name is not None and " " in self.name


def parse_instruction_reference(
    raw: str, *, default_prefix: str = DEFAULT_REFERENCE_PREFIX
) -> InstructionReference | None:
    """Split ``PREFIX-<id>-<code>`` into its three parts.

    A bare ``<id>-<code>`` (or a prefix without its dash) is normalized onto
    ``default_prefix``.
    """

    text = raw.strip()
    match = _COMPOUND_REFERENCE.match(text)
    if match is None:
        return None
    _prefix, prospect_id, passcode = match.groups()
    if _PREFIXED_REFERENCE.match(text):
        instruction_ref = text.upper()
    else:
        instruction_ref = f"{default_prefix}-{prospect_id}-{passcode}"
    return InstructionReference(
        instruction_ref=instruction_ref,
        prospect_id=prospect_id,
        passcode=passcode,
    )


def classify_seed(raw: str, *, default_prefix: str = DEFAULT_REFERENCE_PREFIX) -> Seed:
    text = raw.strip()

    reference = parse_instruction_reference(text, default_prefix=default_prefix)
    if reference is not None:
        return Seed(
            raw=text,
            kind=SeedKind.COMPOUND_REFERENCE,
            keys=(
                Key.of(KeyKind.INSTRUCTION_REF, reference.instruction_ref),
                Key.of(KeyKind.PROSPECT_ID, reference.prospect_id),
                Key.of(KeyKind.PASSCODE, reference.passcode),
            ),
        )

    if text.isdigit():
        return Seed(
            raw=text,
            kind=SeedKind.NUMERIC,
            keys=(
                Key.of(KeyKind.PROSPECT_ID, text),
                Key.of(KeyKind.PASSCODE, text),
                Key.of(KeyKind.MATTER_ID, text),
            ),
        )

    if "@" in text and not any(char.isspace() for char in text):
        return Seed(raw=text, kind=SeedKind.EMAIL, keys=(Key.of(KeyKind.EMAIL, text),))

    if _DISPLAY_NUMBER.match(text):
        return Seed(
            raw=text,
            kind=SeedKind.DISPLAY_NUMBER,
            keys=(Key.of(KeyKind.DISPLAY_NUMBER, text),),
        )

    if _LETTER.search(text):
        return Seed(raw=text, kind=SeedKind.NAME, name=normalize_name(text))

    return Seed(raw=text, kind=SeedKind.UNRECOGNIZED)


def seed_from_keys(keys: tuple[Key, ...]) -> Seed:
    """Build a seed directly from known keys, bypassing classification."""

    return Seed(
        raw=", ".join(str(key) for key in keys),
        kind=SeedKind.KEYS,
        keys=keys,
    )
