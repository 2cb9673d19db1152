"""Unit-of-work abstractions for coordinating metadata writes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from canonical_lookup.domain.ports.metadata import MetadataStore

if TYPE_CHECKING:
    from types import TracebackType

    from canonical_lookup.domain.events import EntityId


@runtime_checkable
class MetadataWriter(MetadataStore, Protocol):
    """Write contract for metadata; implementations publish write events."""

    def add_meta(self, object_type: str, entity_id: EntityId, key: str, value: object) -> int: ...

    def update_meta(
        self,
        object_type: str,
        entity_id: EntityId,
        key: str,
        value: object,
        *,
        previous_value: object | None = None,
    ) -> bool: ...

    def delete_meta(
        self, object_type: str, entity_id: EntityId, key: str, value: object | None = None
    ) -> bool: ...


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection.

    ``commit`` must make writes visible before announcing them, so that
    after-commit listeners observe the committed state. ``rollback`` announces
    the writes it discards as ``ROLLED_BACK``.
    """

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class MetadataRepositories(RepositoryCollection):
    """Repositories required to write entity metadata."""

    metadata: MetadataWriter


type MetadataUnitOfWork = UnitOfWork[MetadataRepositories]
