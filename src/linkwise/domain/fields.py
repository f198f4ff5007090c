"""Alias-tolerant access to the loosely-typed fields of store rows.

Both stores name the same concept differently (``Email`` vs ``email``,
``Date_Created`` vs ``datetime``); these helpers resolve a logical field
through an ordered alias list and normalize the values used for identity.
"""

from __future__ import annotations

import re
import unicodedata
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Mapping

EMAIL_FIELDS: Final[tuple[str, ...]] = ("email", "Email", "ClientEmail", "clientEmail")
PHONE_FIELDS: Final[tuple[str, ...]] = (
    "phone",
    "Phone_Number",
    "phone_number",
    "Phone",
    "Telephone",
    "Mobile",
)
TIMESTAMP_FIELDS: Final[tuple[str, ...]] = (
    "datetime",
    "Date_Created",
    "DateCreated",
    "date_created",
    "Touchpoint_Date",
    "created_at",
)
FIRST_NAME_FIELDS: Final[tuple[str, ...]] = (
    "First_Name",
    "first_name",
    "FirstName",
    "first",
    "Forename",
    "forename",
)
LAST_NAME_FIELDS: Final[tuple[str, ...]] = (
    "Last_Name",
    "last_name",
    "LastName",
    "last",
    "Surname",
    "surname",
)
FULL_NAME_FIELDS: Final[tuple[str, ...]] = (
    "FullName",
    "Full_Name",
    "full_name",
    "fullName",
    "Name",
    "name",
    "ClientName",
    "clientName",
)
LEGACY_REFERENCE_FIELDS: Final[tuple[str, ...]] = ("acid", "ACID", "Acid")

_WHITESPACE = re.compile(r"\s+")


def first_value(fields: Mapping[str, object], aliases: tuple[str, ...]) -> object | None:
    """Return the first non-blank value found under any alias."""

    for alias in aliases:
        value = fields.get(alias)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def text_value(fields: Mapping[str, object], aliases: tuple[str, ...]) -> str:
    value = first_value(fields, aliases)
    return "" if value is None else str(value).strip()


def normalize_email(value: object | None) -> str:
    if value is None:
        return ""
    return str(value).strip().casefold()


def normalize_phone(value: object | None) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_name(value: object | None) -> str:
    """Case-fold and collapse whitespace so names compare structurally."""

    if value is None:
        return ""
    text = unicodedata.normalize("NFKC", str(value))
    return _WHITESPACE.sub(" ", text).strip().casefold()


def full_name(fields: Mapping[str, object]) -> str:
    """Normalized full name, preferring an explicit full-name column."""

    explicit = first_value(fields, FULL_NAME_FIELDS)
    if explicit is not None:
        return normalize_name(explicit)
    first = text_value(fields, FIRST_NAME_FIELDS)
    last = text_value(fields, LAST_NAME_FIELDS)
    return normalize_name(f"{first} {last}")


def name_variants(fields: Mapping[str, object]) -> frozenset[str]:
    """Full name in both first-last and last-first order."""

    variants = {full_name(fields)}
    first = text_value(fields, FIRST_NAME_FIELDS)
    last = text_value(fields, LAST_NAME_FIELDS)
    if first or last:
        variants.add(normalize_name(f"{first} {last}"))
        variants.add(normalize_name(f"{last} {first}"))
    variants.discard("")
    return frozenset(variants)
