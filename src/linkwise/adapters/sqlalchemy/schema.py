"""Reflected table metadata with an explicit expiry."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy import Table

    from linkwise.domain.model import StoreSource

type _CacheKey = tuple[StoreSource, str]


@dataclass(slots=True)
class SchemaCache:
    """Per-process cache of reflected tables, keyed by store and table name.

    Entries older than ``ttl_seconds`` are reflected again on next use, so a
    schema change in either store is picked up without a restart.
    """

    ttl_seconds: float = 300.0
    clock: Callable[[], float] = time.monotonic
    _entries: dict[_CacheKey, tuple[float, Table]] = field(
        default_factory=dict["_CacheKey", "tuple[float, Table]"], repr=False
    )
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get(self, source: StoreSource, table: str, load: Callable[[], Table]) -> Table:
        key = (source, table)
        now = self.clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and now - entry[0] < self.ttl_seconds:
                return entry[1]
        reflected = load()
        with self._lock:
            self._entries[key] = (now, reflected)
        return reflected

    def invalidate(self, source: StoreSource | None = None) -> None:
        with self._lock:
            if source is None:
                self._entries.clear()
                return
            for key in [key for key in self._entries if key[0] is source]:
                del self._entries[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
