"""Bounds for closure expansion runs."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Final

from .env import optional_float, optional_int, optional_list
from .errors import ConfigurationError

DEFAULT_MAX_PASSES: Final[int] = 8
DEFAULT_DEADLINE_SECONDS: Final[float] = 30.0
DEFAULT_QUERY_TIMEOUT_SECONDS: Final[float] = 10.0
DEFAULT_ROW_LIMIT: Final[int] = 50
DEFAULT_SHARED_MAILBOX_PREFIXES: Final[tuple[str, ...]] = ("team@", "prospects@")


@dataclass(frozen=True, slots=True)
class ExpansionLimits:
    """Hard bounds that guarantee an expansion run terminates."""

    max_passes: int = DEFAULT_MAX_PASSES
    deadline_seconds: float = DEFAULT_DEADLINE_SECONDS
    query_timeout_seconds: float = DEFAULT_QUERY_TIMEOUT_SECONDS
    row_limit: int = DEFAULT_ROW_LIMIT
    shared_mailbox_prefixes: tuple[str, ...] = DEFAULT_SHARED_MAILBOX_PREFIXES

    def __post_init__(self) -> None:
        if self.max_passes < 1:
            raise ConfigurationError("max_passes must be at least 1")
        if self.deadline_seconds <= 0:
            raise ConfigurationError("deadline_seconds must be positive")
        if self.query_timeout_seconds <= 0:
            raise ConfigurationError("query_timeout_seconds must be positive")
        if self.row_limit < 1:
            raise ConfigurationError("row_limit must be at least 1")

    def with_overrides(
        self,
        *,
        max_passes: int | None = None,
        deadline_seconds: float | None = None,
    ) -> ExpansionLimits:
        return replace(
            self,
            max_passes=self.max_passes if max_passes is None else max_passes,
            deadline_seconds=(
                self.deadline_seconds if deadline_seconds is None else deadline_seconds
            ),
        )


def get_expansion_limits() -> ExpansionLimits:
    return ExpansionLimits(
        max_passes=optional_int("LINKWISE_MAX_PASSES", DEFAULT_MAX_PASSES),
        deadline_seconds=optional_float("LINKWISE_DEADLINE_SECONDS", DEFAULT_DEADLINE_SECONDS),
        query_timeout_seconds=optional_float(
            "LINKWISE_QUERY_TIMEOUT_SECONDS", DEFAULT_QUERY_TIMEOUT_SECONDS
        ),
        row_limit=optional_int("LINKWISE_ROW_LIMIT", DEFAULT_ROW_LIMIT),
        shared_mailbox_prefixes=optional_list(
            "LINKWISE_SHARED_MAILBOXES", DEFAULT_SHARED_MAILBOX_PREFIXES
        ),
    )
