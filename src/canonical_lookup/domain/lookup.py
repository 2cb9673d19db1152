"""Read-through resolution of canonical ids to local entity ids."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from canonical_lookup.domain.normalization import absint, meta_value_text

if TYPE_CHECKING:
    from canonical_lookup.config import LookupConfig
    from canonical_lookup.domain.events import EntityId
    from canonical_lookup.domain.ports import MetadataStore, ObjectCache

log = logging.getLogger(__name__)


class CanonicalLookup:
    """Resolve ``(canonical_id, canonical_site_id)`` pairs for one object type.

    Candidate entity ids are cached per normalized canonical id in the lookup's
    cache group; the site id filter runs on every call against the candidates.
    """

    def __init__(self, store: MetadataStore, cache: ObjectCache, config: LookupConfig) -> None:
        self.store = store
        self.cache = cache
        self.config = config

    def cache_key(self, canonical_id: object) -> int:
        return absint(canonical_id)

    def candidates(self, canonical_id: object) -> tuple[EntityId, ...]:
        """Return every entity carrying ``canonical_id``, populating the cache on a miss."""

        key = self.cache_key(canonical_id)
        group = self.config.cache_group
        cached = self.cache.get(key, group)
        if isinstance(cached, (tuple, list)):
            log.debug("Canonical lookup cache hit: group=%s key=%s", group, key)
            return tuple(cached)  # pyright: ignore[reportUnknownArgumentType]

        log.debug("Canonical lookup cache miss: group=%s key=%s", group, key)
        found = tuple(
            self.store.get_entities_by_field(
                self.config.object_type, self.config.canonical_id_field, meta_value_text(key)
            )
        )
        # cache the empty result as well; a miss should cost one query
        self.cache.set(key, found, group)
        return found

    def resolve(self, canonical_id: object, canonical_site_id: object) -> EntityId | None:
        """Return the local entity for the pair, or ``None`` when nothing matches.

        When several candidates carry the requested site id, the last one in
        store order wins.
        """

        site_id = absint(canonical_site_id)
        match: EntityId | None = None
        for entity_id in self.candidates(canonical_id):
            value = self.store.get_field(
                self.config.object_type, entity_id, self.config.canonical_site_id_field
            )
            if absint(value) == site_id:
                match = entity_id
        return match

    def forget(self, canonical_id: object) -> bool:
        """Drop the cached candidates for ``canonical_id``."""

        return self.cache.delete(self.cache_key(canonical_id), self.config.cache_group)
