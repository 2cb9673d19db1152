"""Ports the canonical lookup domain depends on."""

from __future__ import annotations

from .cache import ObjectCache
from .events import WriteEventBus
from .metadata import MetadataStore
from .unit_of_work import (
    MetadataRepositories,
    MetadataUnitOfWork,
    MetadataWriter,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "MetadataRepositories",
    "MetadataStore",
    "MetadataUnitOfWork",
    "MetadataWriter",
    "ObjectCache",
    "RepositoryCollection",
    "UnitOfWork",
    "WriteEventBus",
]
