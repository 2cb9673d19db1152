"""Evict canonical lookup cache entries when the indexed field is written.

Additions are evicted straight away because ``ADDED`` fires after commit.
Updates and deletes are observed through their ``BEFORE_*`` events, while the
outgoing values are still known: the write carries them, or failing that they
are read from the store. The eviction itself is armed as a one-shot
:class:`PendingEviction` on the matching after-commit event so that no reader
can repopulate the cache from the pre-write state once the eviction has run. A ``ROLLED_BACK`` write evicts
everything it touched, since a reader inside the abandoned transaction may
have cached uncommitted state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from canonical_lookup.domain.errors import ListenerAlreadyRegisteredError
from canonical_lookup.domain.events import DEFAULT_PRIORITY, MetaEvent
from canonical_lookup.domain.normalization import absint

if TYPE_CHECKING:
    from collections.abc import Callable

    from canonical_lookup.config import LookupConfig
    from canonical_lookup.domain.events import EntityId, MetaWrite, Subscription
    from canonical_lookup.domain.ports import MetadataStore, ObjectCache, WriteEventBus

log = logging.getLogger(__name__)

# Read the outgoing value before any other update listener can touch the row.
BEFORE_UPDATE_PRIORITY: Final[int] = 5

type PendingKey = tuple[MetaEvent, EntityId, tuple[int, ...]]


class EvictionState(StrEnum):
    REGISTERED = "registered"
    FIRED = "fired"
    DISCARDED = "discarded"


@dataclass(eq=False, slots=True)
class PendingEviction:
    """One-shot eviction bound to the keys captured from a single write."""

    entity_id: EntityId
    keys: tuple[int, ...]
    event: MetaEvent
    cache: ObjectCache
    group: str
    bus: WriteEventBus
    on_done: Callable[[PendingEviction], None] | None = None
    state: EvictionState = EvictionState.REGISTERED
    subscription: Subscription | None = field(default=None, repr=False)

    @property
    def pending_key(self) -> PendingKey:
        return (self.event, self.entity_id, self.keys)

    def arm(self) -> PendingEviction:
        self.subscription = self.bus.subscribe(self.event, self)
        return self

    def __call__(self, write: MetaWrite) -> None:
        if self.state is not EvictionState.REGISTERED:
            return
        self._release(EvictionState.FIRED)
        for key in self.keys:
            self.cache.delete(key, self.group)
        log.debug(
            "Evicted canonical lookup keys %s from %s after %s on %s",
            self.keys,
            self.group,
            self.event,
            write.entity_id,
        )

    def discard(self) -> None:
        if self.state is EvictionState.REGISTERED:
            self._release(EvictionState.DISCARDED)

    def _release(self, state: EvictionState) -> None:
        self.state = state
        if self.subscription is not None:
            self.bus.unsubscribe(self.subscription)
        if self.on_done is not None:
            self.on_done(self)


class CanonicalLookupInvalidator:
    """Keeps a :class:`~canonical_lookup.domain.lookup.CanonicalLookup` cache honest."""

    def __init__(
        self,
        store: MetadataStore,
        cache: ObjectCache,
        bus: WriteEventBus,
        config: LookupConfig,
    ) -> None:
        self.store = store
        self.cache = cache
        self.bus = bus
        self.config = config
        self._subscriptions: tuple[Subscription, ...] = ()
        self._pending: dict[PendingKey, PendingEviction] = {}

    @property
    def is_registered(self) -> bool:
        return bool(self._subscriptions)

    @property
    def pending(self) -> tuple[PendingEviction, ...]:
        return tuple(self._pending.values())

    def register(self) -> tuple[Subscription, ...]:
        """Attach the write handlers to the bus and return their handles."""

        if self._subscriptions:
            raise ListenerAlreadyRegisteredError(
                f"Invalidator for {self.config.cache_group} is already registered"
            )
        self._subscriptions = (
            self.bus.subscribe(MetaEvent.ADDED, self.on_added, priority=DEFAULT_PRIORITY),
            self.bus.subscribe(
                MetaEvent.BEFORE_UPDATE, self.on_before_update, priority=BEFORE_UPDATE_PRIORITY
            ),
            self.bus.subscribe(
                MetaEvent.BEFORE_DELETE, self.on_before_delete, priority=DEFAULT_PRIORITY
            ),
            self.bus.subscribe(
                MetaEvent.ROLLED_BACK, self.on_rolled_back, priority=DEFAULT_PRIORITY
            ),
        )
        return self._subscriptions

    def unregister(self) -> None:
        """Detach from the bus and drop any eviction still waiting for its commit."""

        for subscription in self._subscriptions:
            self.bus.unsubscribe(subscription)
        self._subscriptions = ()
        for pending in tuple(self._pending.values()):
            pending.discard()
        self._pending.clear()

    def on_added(self, write: MetaWrite) -> None:
        if not self._is_indexed_field(write):
            return
        key = absint(write.value)
        self.cache.delete(key, self.config.cache_group)
        log.debug("Evicted canonical lookup key %s after add on %s", key, write.entity_id)

    def on_before_update(self, write: MetaWrite) -> None:
        if not self._is_indexed_field(write):
            return
        new_value = absint(write.value)
        old_values = tuple(key for key in self._outgoing_keys(write) if key != new_value)
        if not old_values:
            return
        self._arm(MetaEvent.UPDATED, write.entity_id, (*old_values, new_value))

    def on_before_delete(self, write: MetaWrite) -> None:
        if not self._is_indexed_field(write):
            return
        # a value-filtered delete removes exactly that value
        keys = self._outgoing_keys(write, known=write.value)
        self._arm(MetaEvent.DELETED, write.entity_id, keys)

    def on_rolled_back(self, write: MetaWrite) -> None:
        """Evict every key an abandoned write touched and drop its pending eviction.

        Readers sharing the abandoned transaction may have cached its state.
        """

        if not self._is_indexed_field(write):
            return
        raw = write.previous_values
        if write.value is not None:
            raw = (*raw, write.value)
        keys = tuple(dict.fromkeys(absint(value) for value in raw))
        for pending in self.pending:
            if pending.entity_id == write.entity_id and set(pending.keys) <= set(keys):
                pending.discard()
        for key in keys:
            self.cache.delete(key, self.config.cache_group)
        log.debug("Evicted canonical lookup keys %s after rollback on %s", keys, write.entity_id)

    def _is_indexed_field(self, write: MetaWrite) -> bool:
        return (
            write.field_name == self.config.canonical_id_field
            and write.object_type == self.config.object_type
        )

    def _outgoing_keys(self, write: MetaWrite, *, known: str | None = None) -> tuple[int, ...]:
        """Normalized values leaving the entity, read from the store only as a last resort."""

        if write.previous_values:
            raw: tuple[str | None, ...] = write.previous_values
        elif known is not None:
            raw = (known,)
        else:
            raw = (self.store.get_field(write.object_type, write.entity_id, write.field_name),)
        return tuple(dict.fromkeys(absint(value) for value in raw))

    def _arm(self, event: MetaEvent, entity_id: EntityId, keys: tuple[int, ...]) -> None:
        pending_key: PendingKey = (event, entity_id, keys)
        if pending_key in self._pending:
            log.debug("Eviction of %s for %s already pending on %s", keys, entity_id, event)
            return
        pending = PendingEviction(
            entity_id=entity_id,
            keys=keys,
            event=event,
            cache=self.cache,
            group=self.config.cache_group,
            bus=self.bus,
            on_done=self._forget_pending,
        )
        self._pending[pending_key] = pending.arm()

    def _forget_pending(self, pending: PendingEviction) -> None:
        self._pending.pop(pending.pending_key, None)
