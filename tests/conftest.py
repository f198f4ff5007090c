from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from linkwise.adapters.sqlalchemy import SchemaCache, StoreContext
from linkwise.domain.model import StoreSource
from tests.support.schema import CURRENT_METADATA, LEGACY_METADATA

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "LEGACY_DATABASE_URI",
        "CURRENT_DATABASE_URI",
        "LINKWISE_SCHEMA_TTL_SECONDS",
        "LINKWISE_MAX_PASSES",
        "LINKWISE_DEADLINE_SECONDS",
        "LINKWISE_QUERY_TIMEOUT_SECONDS",
        "LINKWISE_ROW_LIMIT",
        "LINKWISE_SHARED_MAILBOXES",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def caplog_debug(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    caplog.set_level(logging.DEBUG, logger="linkwise")
    return caplog


# File-backed databases: expansion queries run on worker threads.
@pytest.fixture
def legacy_engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'legacy.db'}")
    LEGACY_METADATA.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def current_engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'current.db'}")
    CURRENT_METADATA.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def store_context(legacy_engine: Engine, current_engine: Engine) -> Iterator[StoreContext]:
    context = StoreContext(
        {StoreSource.LEGACY: legacy_engine, StoreSource.CURRENT: current_engine},
        schema_cache=SchemaCache(ttl_seconds=300.0),
    )
    try:
        yield context
    finally:
        context.dispose()
