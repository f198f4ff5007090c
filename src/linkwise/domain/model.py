"""Core record types shared by reconciliation and closure resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from .errors import InvalidStatusTransitionError
from .fields import (
    EMAIL_FIELDS,
    LEGACY_REFERENCE_FIELDS,
    PHONE_FIELDS,
    TIMESTAMP_FIELDS,
    first_value,
    full_name,
    normalize_email,
    normalize_phone,
)

if TYPE_CHECKING:
    from collections.abc import Iterator


class StoreSource(StrEnum):
    """Which of the two stores a record was read from."""

    LEGACY = "legacy"
    CURRENT = "current"


class MigrationStatus(StrEnum):
    """How a legacy record's counterpart in the current store was found."""

    NOT_CHECKED = "not-checked"
    MIGRATED = "migrated"
    PARTIAL = "partial"
    NOT_MIGRATED = "not-migrated"
    INSTRUCTIONS_ONLY = "instructions-only"


_FORWARD_TRANSITIONS: Final[dict[MigrationStatus, frozenset[MigrationStatus]]] = {
    MigrationStatus.NOT_CHECKED: frozenset(
        {
            MigrationStatus.MIGRATED,
            MigrationStatus.PARTIAL,
            MigrationStatus.NOT_MIGRATED,
            MigrationStatus.INSTRUCTIONS_ONLY,
        }
    ),
}


class MatchBasis(StrEnum):
    EXACT_FOREIGN_KEY = "exact-foreign-key"
    FUZZY_CONTACT_SAME_DAY = "fuzzy-contact-same-day"


@dataclass(slots=True, eq=False)
class Record:
    """One row from a store: an open field bag plus identity metadata.

    Records compare by identity; two rows with equal content are still two
    records, because legacy ids are reused across distinct people.
    """

    fields: dict[str, object]
    source: StoreSource
    primary_key: str
    migration_status: MigrationStatus = MigrationStatus.NOT_CHECKED

    @property
    def id(self) -> object | None:
        """Primary-key value; the field name is matched case-insensitively as a fallback."""

        if not self.primary_key:
            return None
        if self.primary_key in self.fields:
            return self.fields[self.primary_key]
        folded = self.primary_key.casefold()
        for name, value in self.fields.items():
            if name.casefold() == folded:
                return value
        return None

    @property
    def id_text(self) -> str:
        value = self.id
        return "" if value is None else str(value).strip()

    @property
    def email(self) -> str:
        return normalize_email(first_value(self.fields, EMAIL_FIELDS))

    @property
    def phone(self) -> str:
        return normalize_phone(first_value(self.fields, PHONE_FIELDS))

    @property
    def timestamp(self) -> object | None:
        return first_value(self.fields, TIMESTAMP_FIELDS)

    @property
    def legacy_reference(self) -> str:
        value = first_value(self.fields, LEGACY_REFERENCE_FIELDS)
        return "" if value is None else str(value).strip()

    @property
    def full_name(self) -> str:
        return full_name(self.fields)

    def mark(self, status: MigrationStatus) -> None:
        """Move the migration status forward; re-marking the same status is a no-op."""

        if status is self.migration_status:
            return
        allowed = _FORWARD_TRANSITIONS.get(self.migration_status, frozenset())
        if status not in allowed:
            raise InvalidStatusTransitionError(
                f"Cannot move record {self.source}:{self.id_text} "
                f"from {self.migration_status} to {status}"
            )
        self.migration_status = status

    def as_dict(self) -> dict[str, object]:
        return {
            **self.fields,
            "source": self.source.value,
            "migrationStatus": self.migration_status.value,
        }


@dataclass(frozen=True, slots=True)
class MatchResult:
    legacy_id: str
    current_id: str
    basis: MatchBasis


@dataclass(frozen=True, slots=True)
class LookupWarning:
    """A recovered failure or empty outcome worth reporting to the caller."""

    source: str
    message: str

    def __str__(self) -> str:
        return f"[{self.source}] {self.message}"


@dataclass(slots=True)
class WarningLog:
    """Ordered, duplicate-free collection of warnings for one run."""

    items: list[LookupWarning] = field(default_factory=list[LookupWarning])

    def add(self, source: str, message: str) -> LookupWarning:
        warning = LookupWarning(source=source, message=message)
        if warning not in self.items:
            self.items.append(warning)
        return warning

    def __iter__(self) -> Iterator[LookupWarning]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)
