"""Application wiring for canonical lookups."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from canonical_lookup.adapters.memory import InMemoryObjectCache
from canonical_lookup.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyMetadataUnitOfWork,
    is_started,
    metadata_reader,
    startup,
)
from canonical_lookup.config import get_lookup_config
from canonical_lookup.domain.events import EventHub
from canonical_lookup.domain.invalidation import CanonicalLookupInvalidator
from canonical_lookup.domain.lookup import CanonicalLookup

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from canonical_lookup.config import LookupConfig, ObjectType
    from canonical_lookup.domain.events import EntityId, Subscription
    from canonical_lookup.domain.ports import ObjectCache
    from canonical_lookup.domain.ports.unit_of_work import MetadataUnitOfWork


log = getLogger(__name__)


@dataclass(slots=True)
class CanonicalLookupService:
    """A resolver and the listener keeping its cache in step with the store."""

    config: LookupConfig
    lookup: CanonicalLookup
    invalidator: CanonicalLookupInvalidator
    events: EventHub
    cache: ObjectCache
    subscriptions: tuple[Subscription, ...] = field(default=())

    def resolve(self, canonical_id: object, canonical_site_id: object) -> EntityId | None:
        return self.lookup.resolve(canonical_id, canonical_site_id)

    def unit_of_work(self) -> MetadataUnitOfWork:
        """Open a unit of work whose committed writes reach this service's listener."""

        return SqlAlchemyMetadataUnitOfWork(self.events)

    def close(self) -> None:
        self.invalidator.unregister()
        self.subscriptions = ()


def bootstrap(
    *,
    object_type: ObjectType | str | None = None,
    engine: Engine | None = None,
    cache: ObjectCache | None = None,
    events: EventHub | None = None,
    load_env: bool = True,
) -> CanonicalLookupService:
    """Build a ready-to-use lookup service on top of the SQLAlchemy store.

    The adapter is started on first use; later calls reuse it unless an
    explicit ``engine`` is given.
    """

    if load_env:
        load_dotenv()
    config = get_lookup_config(object_type=object_type)
    if engine is not None:
        startup(engine=engine, force=True)
    elif not is_started():
        startup()

    effective_cache = cache if cache is not None else InMemoryObjectCache()
    effective_events = events if events is not None else EventHub()
    store = metadata_reader()

    lookup = CanonicalLookup(store, effective_cache, config)
    invalidator = CanonicalLookupInvalidator(store, effective_cache, effective_events, config)
    subscriptions = invalidator.register()
    log.info(
        "Canonical lookup ready: object_type=%s, field=%s, cache_group=%s",
        config.object_type,
        config.canonical_id_field,
        config.cache_group,
    )
    return CanonicalLookupService(
        config=config,
        lookup=lookup,
        invalidator=invalidator,
        events=effective_events,
        cache=effective_cache,
        subscriptions=subscriptions,
    )
