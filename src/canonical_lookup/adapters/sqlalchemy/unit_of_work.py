"""SQLAlchemy-backed unit of work that announces metadata writes after commit."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, scoped_session, sessionmaker

from canonical_lookup.adapters.sqlalchemy.mappings import create_all_tables
from canonical_lookup.adapters.sqlalchemy.repositories import (
    Outbox,
    SqlAlchemyMetadataReader,
    SqlAlchemyMetadataStore,
)
from canonical_lookup.config import get_database_uri
from canonical_lookup.domain.events import MetaEvent
from canonical_lookup.domain.ports.unit_of_work import MetadataRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

    from canonical_lookup.domain.events import EventHub

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _sessions: scoped_session[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        if self._sessions is not None:
            self._sessions.remove()
        self._sessions = None
        self._engine = value

    @property
    def sessions(self) -> scoped_session[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call canonical_lookup.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._sessions is None:
            self._sessions = scoped_session(
                sessionmaker(bind=self._engine, expire_on_commit=False)
            )
        return self._sessions


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Initialise the SQLAlchemy engine, tables, and session registry."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(database_uri or get_database_uri(), future=True)
    create_all_tables(resolved_engine)
    _STATE.engine = resolved_engine
    log.info("Metadata store ready on %s", resolved_engine.url)
    return resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


def metadata_reader() -> SqlAlchemyMetadataReader:
    """Return a reader sharing the session of whichever unit of work is open."""

    return SqlAlchemyMetadataReader(_STATE.sessions)


class SqlAlchemyMetadataUnitOfWork:
    """Unit of work for metadata writes.

    Write events for additions, updates and deletions are held back until
    :meth:`commit` has returned from the database, then published in the order
    the writes were made. A rollback, or leaving the block without committing,
    discards them and announces each one as ``ROLLED_BACK`` instead so that
    anything cached from the uncommitted rows can be dropped.
    """

    def __init__(self, events: EventHub) -> None:
        self.sessions: scoped_session[Session] = _STATE.sessions
        self.events = events
        self._session: Session | None = None
        self._outbox: Outbox = []

    def __enter__(self) -> SqlAlchemyMetadataUnitOfWork:
        if self.sessions.registry.has():
            raise StartupError("A metadata unit of work is already open on this thread")
        self.session = self.sessions()
        self._repositories = MetadataRepositories(
            metadata=SqlAlchemyMetadataStore(self.session, self.events, self._outbox)
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None or self._outbox:
            self.rollback()
        self.sessions.remove()
        self.session = None
        return False

    def commit(self) -> None:
        self.session.commit()
        committed = list(self._outbox)
        self._outbox.clear()
        for event, write in committed:
            self.events.publish(event, write)

    def rollback(self) -> None:
        self.session.rollback()
        discarded = list(self._outbox)
        self._outbox.clear()
        if discarded:
            log.debug("Discarding %d unannounced metadata write(s)", len(discarded))
        for _event, write in discarded:
            self.events.publish(MetaEvent.ROLLED_BACK, write)

    @property
    def repositories(self) -> MetadataRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session

