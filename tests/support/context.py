"""Store provider stand-in for service and CLI tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tests.support.stores import linked_entity_stores

if TYPE_CHECKING:
    from linkwise.domain.model import StoreSource
    from tests.support.stores import FakeStore


@dataclass(slots=True)
class FakeStoreContext:
    provided: dict[StoreSource, FakeStore] = field(default_factory=dict)
    closed: bool = False

    @classmethod
    def linked_entity(cls) -> FakeStoreContext:
        legacy, current = linked_entity_stores()
        return cls({legacy.source: legacy, current.source: current})

    def stores(self) -> dict[StoreSource, FakeStore]:
        return dict(self.provided)

    def __enter__(self) -> FakeStoreContext:
        return self

    def __exit__(self, *_: object) -> None:
        self.closed = True
