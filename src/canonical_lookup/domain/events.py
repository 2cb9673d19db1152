"""Metadata write events and the synchronous hub that dispatches them.

The store publishes ``BEFORE_*`` events while a write is still pending and the
past-tense events (``ADDED``, ``UPDATED``, ``DELETED``) only once the write is
visible to subsequent reads. Listeners that need the pre-write state subscribe
to the former; listeners that must observe the committed state subscribe to the
latter. Writes a unit of work abandons are announced as ``ROLLED_BACK`` in
place of their after-commit event.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Final

log = logging.getLogger(__name__)

DEFAULT_PRIORITY: Final[int] = 10

type EntityId = int | str


class MetaEvent(StrEnum):
    ADDED = "added_meta"
    BEFORE_UPDATE = "update_meta"
    UPDATED = "updated_meta"
    BEFORE_DELETE = "delete_meta"
    DELETED = "deleted_meta"
    ROLLED_BACK = "rolled_back_meta"


@dataclass(frozen=True, slots=True)
class MetaWrite:
    """Payload describing a single metadata write.

    ``previous_values`` holds the values of the rows being overwritten or
    removed, one per entry in ``meta_ids``, when the store knows them.
    """

    object_type: str
    entity_id: EntityId
    field_name: str
    value: str | None = None
    meta_ids: tuple[int, ...] = ()
    previous_values: tuple[str | None, ...] = ()


type MetaCallback = Callable[[MetaWrite], object]


@dataclass(eq=False, slots=True)
class Subscription:
    """Handle returned by :meth:`EventHub.subscribe`; pass it back to unsubscribe."""

    event: MetaEvent
    callback: MetaCallback
    priority: int = DEFAULT_PRIORITY
    sequence: int = 0
    active: bool = True

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.priority, self.sequence)


@dataclass(slots=True)
class EventHub:
    """In-process, synchronous publish/subscribe for metadata writes.

    Callbacks run in ascending priority, ties in registration order. Dispatch
    iterates over a snapshot, so a callback may unsubscribe itself (or others)
    mid-dispatch; deactivated subscriptions are skipped. Callback exceptions
    propagate to the publisher.
    """

    _subscriptions: dict[MetaEvent, list[Subscription]] = field(default_factory=dict)
    _counter: itertools.count[int] = field(default_factory=itertools.count)

    def subscribe(
        self,
        event: MetaEvent,
        callback: MetaCallback,
        *,
        priority: int = DEFAULT_PRIORITY,
    ) -> Subscription:
        subscription = Subscription(
            event=event,
            callback=callback,
            priority=priority,
            sequence=next(self._counter),
        )
        bucket = self._subscriptions.setdefault(event, [])
        bucket.append(subscription)
        bucket.sort(key=lambda sub: sub.sort_key)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Deactivate ``subscription``; returns ``False`` if it was already removed."""

        if not subscription.active:
            return False
        subscription.active = False
        bucket = self._subscriptions.get(subscription.event, [])
        if subscription in bucket:
            bucket.remove(subscription)
        return True

    def publish(self, event: MetaEvent, write: MetaWrite) -> None:
        snapshot = tuple(self._subscriptions.get(event, ()))
        if not snapshot:
            return
        log.debug(
            "Dispatching %s for %s:%s to %d subscriber(s)",
            event,
            write.object_type,
            write.entity_id,
            len(snapshot),
        )
        for subscription in snapshot:
            if not subscription.active:
                continue
            subscription.callback(write)

    def subscriber_count(self, event: MetaEvent | None = None) -> int:
        if event is not None:
            return len(self._subscriptions.get(event, ()))
        return sum(len(bucket) for bucket in self._subscriptions.values())

    def clear(self) -> None:
        for bucket in self._subscriptions.values():
            for subscription in bucket:
                subscription.active = False
        self._subscriptions.clear()
