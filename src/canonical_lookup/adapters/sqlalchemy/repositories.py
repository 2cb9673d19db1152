"""Metadata store implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from sqlalchemy import delete, insert, select, update

from canonical_lookup.adapters.sqlalchemy.mappings import entity_meta_table
from canonical_lookup.domain.events import MetaEvent, MetaWrite

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from sqlalchemy import Row, Select
    from sqlalchemy.orm import Session, scoped_session

    from canonical_lookup.domain.events import EntityId, EventHub

log = logging.getLogger(__name__)

type Outbox = list[tuple[MetaEvent, MetaWrite]]


def encode_entity_id(entity_id: EntityId) -> str:
    return str(entity_id)


def decode_entity_id(raw: str) -> EntityId:
    """Entity ids are stored as text; purely numeric ids come back as ``int``."""

    if raw.isascii() and raw.isdigit() and (raw == "0" or not raw.startswith("0")):
        return int(raw)
    return raw


def encode_value(value: object | None) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _field_query(object_type: str, entity_id: EntityId, key: str) -> Select[tuple[str | None]]:
    return (
        select(entity_meta_table.c.meta_value)
        .where(entity_meta_table.c.object_type == object_type)
        .where(entity_meta_table.c.entity_id == encode_entity_id(entity_id))
        .where(entity_meta_table.c.meta_key == key)
        .order_by(entity_meta_table.c.meta_id)
    )


def select_entities_by_field(
    session: Session, object_type: str, field_name: str, value: str
) -> list[EntityId]:
    stmt = (
        select(entity_meta_table.c.entity_id)
        .where(entity_meta_table.c.object_type == object_type)
        .where(entity_meta_table.c.meta_key == field_name)
        .where(entity_meta_table.c.meta_value == value)
        .order_by(entity_meta_table.c.meta_id)
    )
    raw_ids = session.execute(stmt).scalars().all()
    # an entity holding the same value twice is still one candidate
    return [decode_entity_id(raw) for raw in dict.fromkeys(raw_ids)]


def select_first_value(
    session: Session, object_type: str, entity_id: EntityId, field_name: str
) -> str | None:
    return session.execute(_field_query(object_type, entity_id, field_name).limit(1)).scalar()


def select_values(
    session: Session, object_type: str, entity_id: EntityId, field_name: str
) -> list[str | None]:
    return list(session.execute(_field_query(object_type, entity_id, field_name)).scalars())


class SqlAlchemyMetadataReader:
    """Read-only ``MetadataStore`` for long-lived collaborators.

    Queries run on the session of the unit of work open on the current thread,
    so listeners reacting to ``BEFORE_*`` events see the same transaction as the
    writer. Outside a unit of work a short-lived session is used.
    """

    def __init__(self, sessions: scoped_session[Session]) -> None:
        self.sessions = sessions

    @contextmanager
    def _session(self) -> Iterator[Session]:
        if self.sessions.registry.has():
            yield self.sessions()
            return
        with self.sessions.session_factory() as session:
            yield session

    def get_entities_by_field(
        self, object_type: str, field_name: str, value: str
    ) -> list[EntityId]:
        with self._session() as session:
            return select_entities_by_field(session, object_type, field_name, value)

    def get_field(self, object_type: str, entity_id: EntityId, field_name: str) -> str | None:
        with self._session() as session:
            return select_first_value(session, object_type, entity_id, field_name)


class SqlAlchemyMetadataStore:
    """Read/write metadata repository bound to a unit-of-work session.

    ``BEFORE_*`` events are published synchronously ahead of the statement
    they describe. ``ADDED``, ``UPDATED`` and ``DELETED`` go to ``outbox``; the
    unit of work publishes them once the session has committed.
    """

    def __init__(self, session: Session, events: EventHub, outbox: Outbox) -> None:
        self.session = session
        self.events = events
        self.outbox = outbox

    def get_entities_by_field(
        self, object_type: str, field_name: str, value: str
    ) -> list[EntityId]:
        return select_entities_by_field(self.session, object_type, field_name, value)

    def get_field(self, object_type: str, entity_id: EntityId, field_name: str) -> str | None:
        return select_first_value(self.session, object_type, entity_id, field_name)

    def get_values(
        self, object_type: str, entity_id: EntityId, field_name: str
    ) -> list[str | None]:
        """Every value of the key in row order. Used by tests and diagnostics."""

        return select_values(self.session, object_type, entity_id, field_name)

    def add_meta(self, object_type: str, entity_id: EntityId, key: str, value: object) -> int:
        text = encode_value(value)
        result = self.session.execute(
            insert(entity_meta_table).values(
                object_type=object_type,
                entity_id=encode_entity_id(entity_id),
                meta_key=key,
                meta_value=text,
            )
        )
        meta_id = int(result.inserted_primary_key[0])  # pyright: ignore[reportOptionalSubscript]
        self.outbox.append(
            (
                MetaEvent.ADDED,
                MetaWrite(object_type, entity_id, key, text, meta_ids=(meta_id,)),
            )
        )
        return meta_id

    def update_meta(
        self,
        object_type: str,
        entity_id: EntityId,
        key: str,
        value: object,
        *,
        previous_value: object | None = None,
    ) -> bool:
        """Set every value of ``key`` (or only those equal to ``previous_value``).

        A key the entity does not have yet is added instead. Returns whether
        anything changed.
        """

        text = encode_value(value)
        rows = self._rows(object_type, entity_id, key)
        if not rows:
            self.add_meta(object_type, entity_id, key, value)
            return True

        if previous_value is not None:
            expected = encode_value(previous_value)
            rows = [row for row in rows if row.meta_value == expected]
        targets = [row for row in rows if row.meta_value != text]
        if not targets:
            return False

        writes = [
            MetaWrite(
                object_type,
                entity_id,
                key,
                text,
                meta_ids=(row.meta_id,),
                previous_values=(row.meta_value,),
            )
            for row in targets
        ]
        for write in writes:
            self.events.publish(MetaEvent.BEFORE_UPDATE, write)
        self.session.execute(
            update(entity_meta_table)
            .where(entity_meta_table.c.meta_id.in_([row.meta_id for row in targets]))
            .values(meta_value=text)
        )
        self.outbox.extend((MetaEvent.UPDATED, write) for write in writes)
        log.debug("Updated %s on %s:%s (%d row(s))", key, object_type, entity_id, len(targets))
        return True

    def delete_meta(
        self, object_type: str, entity_id: EntityId, key: str, value: object | None = None
    ) -> bool:
        """Delete ``key`` from the entity, optionally only rows holding ``value``."""

        text = encode_value(value)
        rows = self._rows(object_type, entity_id, key)
        if text is not None:
            rows = [row for row in rows if row.meta_value == text]
        if not rows:
            return False

        meta_ids = [row.meta_id for row in rows]
        write = MetaWrite(
            object_type,
            entity_id,
            key,
            text,
            meta_ids=tuple(meta_ids),
            previous_values=tuple(row.meta_value for row in rows),
        )
        self.events.publish(MetaEvent.BEFORE_DELETE, write)
        self.session.execute(
            delete(entity_meta_table).where(entity_meta_table.c.meta_id.in_(meta_ids))
        )
        self.outbox.append((MetaEvent.DELETED, write))
        return True

    def _rows(
        self, object_type: str, entity_id: EntityId, key: str
    ) -> Sequence[Row[tuple[int, str | None]]]:
        stmt = (
            select(entity_meta_table.c.meta_id, entity_meta_table.c.meta_value)
            .where(entity_meta_table.c.object_type == object_type)
            .where(entity_meta_table.c.entity_id == encode_entity_id(entity_id))
            .where(entity_meta_table.c.meta_key == key)
            .order_by(entity_meta_table.c.meta_id)
        )
        return self.session.execute(stmt).all()
