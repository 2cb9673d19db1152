"""Port for the multi-valued metadata store backing canonical lookups."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from canonical_lookup.domain.events import EntityId


@runtime_checkable
class MetadataStore(Protocol):
    """Read contract for per-entity metadata fields."""

    def get_entities_by_field(
        self, object_type: str, field_name: str, value: str
    ) -> Sequence[EntityId]:
        """Return entities whose ``field_name`` equals ``value`` (text equality), in store order."""
        ...

    def get_field(self, object_type: str, entity_id: EntityId, field_name: str) -> str | None:
        """Return the first value of ``field_name`` for the entity, or ``None``."""
        ...
