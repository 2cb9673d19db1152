"""Port for the write-event bus the invalidation listener attaches to."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from canonical_lookup.domain.events import MetaCallback, MetaEvent, Subscription


@runtime_checkable
class WriteEventBus(Protocol):
    """Subscription contract offered by the host's metadata write hooks."""

    def subscribe(
        self,
        event: MetaEvent,
        callback: MetaCallback,
        *,
        priority: int = ...,
    ) -> Subscription: ...

    def unsubscribe(self, subscription: Subscription) -> bool: ...
