"""Application configuration helpers."""

from __future__ import annotations

from .env import require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .expansion import ExpansionLimits, get_expansion_limits
from .logging import configure_logging
from .stores import StoreConfig, get_store_config

__all__ = [
    "ConfigurationError",
    "ExpansionLimits",
    "MissingConfigurationError",
    "StoreConfig",
    "configure_logging",
    "get_expansion_limits",
    "get_store_config",
    "require_env_vars",
]
