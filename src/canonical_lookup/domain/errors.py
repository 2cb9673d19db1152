"""Errors raised by the canonical lookup domain."""

from __future__ import annotations


class CanonicalLookupError(RuntimeError):
    """Base class for canonical lookup failures."""


class ListenerAlreadyRegisteredError(CanonicalLookupError):
    """Raised when an invalidation listener is registered on a bus twice."""
