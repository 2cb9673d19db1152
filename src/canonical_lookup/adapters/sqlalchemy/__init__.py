"""SQLAlchemy adapter package for canonical lookups."""

from __future__ import annotations

from .mappings import create_all_tables, entity_meta_table, metadata_registry
from .repositories import SqlAlchemyMetadataReader, SqlAlchemyMetadataStore
from .unit_of_work import (
    SqlAlchemyMetadataUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    metadata_reader,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyMetadataReader",
    "SqlAlchemyMetadataStore",
    "SqlAlchemyMetadataUnitOfWork",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "entity_meta_table",
    "is_started",
    "metadata_reader",
    "shutdown",
    "startup",
]
