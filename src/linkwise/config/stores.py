"""Store connectivity configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import optional_float, require_env_vars

LEGACY_URI_VAR: Final[str] = "LEGACY_DATABASE_URI"
CURRENT_URI_VAR: Final[str] = "CURRENT_DATABASE_URI"
SCHEMA_TTL_VAR: Final[str] = "LINKWISE_SCHEMA_TTL_SECONDS"
DEFAULT_SCHEMA_TTL_SECONDS: Final[float] = 300.0


@dataclass(frozen=True, slots=True)
class StoreConfig:
    """Connection URIs for the legacy and current stores."""

    legacy_uri: str
    current_uri: str
    schema_ttl_seconds: float = DEFAULT_SCHEMA_TTL_SECONDS


def get_store_config() -> StoreConfig:
    values = require_env_vars((LEGACY_URI_VAR, CURRENT_URI_VAR))
    return StoreConfig(
        legacy_uri=values[LEGACY_URI_VAR],
        current_uri=values[CURRENT_URI_VAR],
        schema_ttl_seconds=optional_float(SCHEMA_TTL_VAR, DEFAULT_SCHEMA_TTL_SECONDS),
    )
