"""Canonical lookup domain: resolution, write events and cache invalidation."""

from __future__ import annotations

from .errors import CanonicalLookupError, ListenerAlreadyRegisteredError
from .events import EntityId, EventHub, MetaEvent, MetaWrite, Subscription
from .invalidation import CanonicalLookupInvalidator, EvictionState, PendingEviction
from .lookup import CanonicalLookup
from .normalization import absint, meta_value_text

__all__ = [
    "CanonicalLookup",
    "CanonicalLookupError",
    "CanonicalLookupInvalidator",
    "EntityId",
    "EventHub",
    "EvictionState",
    "ListenerAlreadyRegisteredError",
    "MetaEvent",
    "MetaWrite",
    "PendingEviction",
    "Subscription",
    "absint",
    "meta_value_text",
]
