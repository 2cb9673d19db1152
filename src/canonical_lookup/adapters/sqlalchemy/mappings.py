"""SQLAlchemy table metadata for the entity metadata store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

ENTITY_META_TABLE: Final[str] = "entity_meta"

metadata_registry = MetaData()

entity_meta_table = Table(
    ENTITY_META_TABLE,
    metadata_registry,
    Column("meta_id", Integer, primary_key=True, autoincrement=True),
    Column("object_type", String(20), nullable=False),
    Column("entity_id", String(64), nullable=False),
    Column("meta_key", String(255), nullable=False),
    Column("meta_value", Text, nullable=True),
    Index("ix_entity_meta_key_value", "object_type", "meta_key", "meta_value"),
    Index("ix_entity_meta_entity_key", "object_type", "entity_id", "meta_key"),
)


def create_all_tables(engine: Engine) -> None:
    log.debug("Creating metadata tables on %s", engine.url)
    metadata_registry.create_all(engine)
