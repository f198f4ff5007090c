"""SQLAlchemy adapter for the legacy and current stores."""

from __future__ import annotations

from .context import StoreContext
from .schema import SchemaCache
from .store import SqlAlchemyStore

__all__ = ["SchemaCache", "SqlAlchemyStore", "StoreContext"]
