"""Concrete adapters for canonical lookups."""

from __future__ import annotations

from .memory import InMemoryObjectCache

__all__ = ["InMemoryObjectCache"]
