from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from canonical_lookup.adapters.memory import InMemoryObjectCache
from canonical_lookup.adapters.sqlalchemy import create_all_tables
from canonical_lookup.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyMetadataUnitOfWork,
    shutdown,
    startup,
)
from canonical_lookup.config import LookupConfig, ObjectType
from canonical_lookup.domain.events import EventHub
from tests.helpers.metadata import FakeMetadataStore, RecordingCache

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def lookup_config() -> LookupConfig:
    return LookupConfig(object_type=ObjectType.POST)


@pytest.fixture
def fake_store() -> FakeMetadataStore:
    return FakeMetadataStore()


@pytest.fixture
def recording_cache() -> RecordingCache:
    return RecordingCache(InMemoryObjectCache())


@pytest.fixture
def event_hub() -> EventHub:
    return EventHub()


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
    event_hub: EventHub,
) -> Iterator[Callable[[], SqlAlchemyMetadataUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyMetadataUnitOfWork:
        return SqlAlchemyMetadataUnitOfWork(event_hub)

    try:
        yield factory
    finally:
        shutdown()
