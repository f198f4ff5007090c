"""Per-process owner of store engines, schema cache and store adapters."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine

from linkwise.config.errors import ConfigurationError
from linkwise.config.stores import get_store_config
from linkwise.domain.closure.catalog import DEFAULT_CATALOGS
from linkwise.domain.model import StoreSource

from .schema import SchemaCache
from .store import SqlAlchemyStore

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from sqlalchemy.engine import Engine

    from linkwise.config.stores import StoreConfig
    from linkwise.domain.closure.catalog import StoreCatalog

log = logging.getLogger(__name__)


class StoreContext:
    """Explicit replacement for module-level connection state.

    Build one per process (``from_config`` in the CLI, directly from engines in
    tests), pass it to the services that need stores, and ``dispose`` it on the
    way out.
    """

    def __init__(
        self,
        engines: Mapping[StoreSource, Engine],
        *,
        schema_cache: SchemaCache | None = None,
        catalogs: Mapping[StoreSource, StoreCatalog] = DEFAULT_CATALOGS,
    ) -> None:
        self._engines = dict(engines)
        self._schema_cache = schema_cache or SchemaCache()
        self._catalogs = dict(catalogs)
        self._stores: dict[StoreSource, SqlAlchemyStore] = {}

    @classmethod
    def from_config(cls, config: StoreConfig | None = None) -> StoreContext:
        resolved = config or get_store_config()
        engines = {
            StoreSource.LEGACY: create_engine(resolved.legacy_uri),
            StoreSource.CURRENT: create_engine(resolved.current_uri),
        }
        log.debug("Created engines for %s", ", ".join(str(source) for source in engines))
        return cls(engines, schema_cache=SchemaCache(ttl_seconds=resolved.schema_ttl_seconds))

    @property
    def schema_cache(self) -> SchemaCache:
        return self._schema_cache

    def engine(self, source: StoreSource) -> Engine:
        try:
            return self._engines[source]
        except KeyError:
            raise ConfigurationError(f"No engine configured for the {source} store") from None

    def store(self, source: StoreSource) -> SqlAlchemyStore:
        store = self._stores.get(source)
        if store is None:
            catalog = self._catalogs.get(source)
            if catalog is None:
                raise ConfigurationError(f"No table catalog configured for the {source} store")
            store = SqlAlchemyStore(
                source=source,
                engine=self.engine(source),
                catalog=catalog,
                schema_cache=self._schema_cache,
            )
            self._stores[source] = store
        return store

    def stores(self) -> dict[StoreSource, SqlAlchemyStore]:
        return {source: self.store(source) for source in self._engines}

    def dispose(self) -> None:
        for engine in self._engines.values():
            engine.dispose()
        self._schema_cache.invalidate()
        self._stores.clear()

    def __enter__(self) -> StoreContext:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        self.dispose()
        return False
