from __future__ import annotations

import pytest

from canonical_lookup.config import CANONICAL_ID_FIELD, CANONICAL_SITE_ID_FIELD, LookupConfig
from canonical_lookup.domain.lookup import CanonicalLookup
from tests.helpers.metadata import FakeMetadataStore, RecordingCache, StoreUnavailableError


def _add_entity(
    store: FakeMetadataStore, entity_id: int, canonical_id: object, site_id: object
) -> None:
    store.add(entity_id, CANONICAL_ID_FIELD, canonical_id)
    store.add(entity_id, CANONICAL_SITE_ID_FIELD, site_id)


@pytest.fixture
def lookup(
    fake_store: FakeMetadataStore, recording_cache: RecordingCache, lookup_config: LookupConfig
) -> CanonicalLookup:
    return CanonicalLookup(fake_store, recording_cache, lookup_config)


def test_miss_populates_cache_with_matching_entities(
    lookup: CanonicalLookup, fake_store: FakeMetadataStore, recording_cache: RecordingCache
) -> None:
    _add_entity(fake_store, 10, 7, 3)
    _add_entity(fake_store, 11, 7, 4)
    _add_entity(fake_store, 12, 8, 3)

    assert lookup.candidates(7) == (10, 11)
    assert recording_cache.inner.get(7, lookup.config.cache_group) == (10, 11)
    assert fake_store.calls[0] == (
        "get_entities_by_field",
        ("post", CANONICAL_ID_FIELD, "7"),
    )


def test_miss_caches_empty_result(
    lookup: CanonicalLookup, fake_store: FakeMetadataStore, recording_cache: RecordingCache
) -> None:
    assert lookup.resolve(99, 1) is None
    assert recording_cache.inner.contains(99, lookup.config.cache_group)

    assert lookup.resolve(99, 1) is None
    assert fake_store.query_count("get_entities_by_field") == 1


def test_hit_does_not_requery_store_even_if_store_changed(
    lookup: CanonicalLookup, fake_store: FakeMetadataStore
) -> None:
    _add_entity(fake_store, 10, 7, 3)
    assert lookup.resolve(7, 3) == 10

    _add_entity(fake_store, 20, 7, 3)

    assert lookup.resolve(7, 3) == 10
    assert fake_store.query_count("get_entities_by_field") == 1


def test_last_matching_candidate_wins(
    lookup: CanonicalLookup, fake_store: FakeMetadataStore
) -> None:
    # two entities claim the same canonical pair; store order decides
    _add_entity(fake_store, 1, 7, 3)
    _add_entity(fake_store, 2, 7, 3)

    assert lookup.resolve(7, 3) == 2


def test_site_filter_runs_on_every_call(
    lookup: CanonicalLookup, fake_store: FakeMetadataStore
) -> None:
    _add_entity(fake_store, 1, 7, 3)
    _add_entity(fake_store, 2, 7, 4)

    assert lookup.resolve(7, 3) == 1
    assert lookup.resolve(7, 4) == 2
    assert lookup.resolve(7, 5) is None
    assert fake_store.query_count("get_entities_by_field") == 1
    assert fake_store.query_count("get_field") == 6


def test_no_match_returns_none(lookup: CanonicalLookup, fake_store: FakeMetadataStore) -> None:
    _add_entity(fake_store, 1, 7, 3)

    assert lookup.resolve(7, 9) is None
    assert lookup.resolve(8, 3) is None


def test_identifiers_are_normalized_on_read_and_cache_paths(
    lookup: CanonicalLookup, fake_store: FakeMetadataStore, recording_cache: RecordingCache
) -> None:
    _add_entity(fake_store, 5, "42", " 3")

    assert lookup.resolve("42", "3") == 5
    assert lookup.resolve(" 42", 3.0) == 5
    assert lookup.resolve(42, "3abc") == 5

    keys = {key for operation, key, _ in recording_cache.operations if operation in {"get", "set"}}
    assert keys == {42}
    assert fake_store.query_count("get_entities_by_field") == 1


def test_malformed_ids_resolve_against_zero(
    lookup: CanonicalLookup, fake_store: FakeMetadataStore
) -> None:
    store_entity = 3
    fake_store.add(store_entity, CANONICAL_ID_FIELD, "0")

    # absent site id normalizes to zero as well
    assert lookup.resolve("not-a-number", -4) == store_entity
    assert lookup.cache_key(None) == 0


def test_store_failure_propagates_and_leaves_cache_empty(
    lookup: CanonicalLookup, fake_store: FakeMetadataStore, recording_cache: RecordingCache
) -> None:
    fake_store.offline = True

    with pytest.raises(StoreUnavailableError):
        lookup.resolve(7, 3)

    assert not recording_cache.inner.contains(7, lookup.config.cache_group)

    fake_store.offline = False
    _add_entity(fake_store, 1, 7, 3)
    assert lookup.resolve(7, 3) == 1


def test_cached_list_values_are_accepted(
    lookup: CanonicalLookup, fake_store: FakeMetadataStore, recording_cache: RecordingCache
) -> None:
    _add_entity(fake_store, 1, 7, 3)
    recording_cache.inner.set(7, [1], lookup.config.cache_group)

    assert lookup.resolve(7, 3) == 1
    assert fake_store.query_count("get_entities_by_field") == 0


def test_forget_drops_cached_candidates(
    lookup: CanonicalLookup, fake_store: FakeMetadataStore
) -> None:
    _add_entity(fake_store, 1, 7, 3)
    lookup.resolve(7, 3)

    assert lookup.forget("7") is True
    assert lookup.forget(7) is False

    _add_entity(fake_store, 2, 7, 3)
    assert lookup.resolve(7, 3) == 2


def test_lookups_for_other_object_types_are_isolated(
    fake_store: FakeMetadataStore, recording_cache: RecordingCache
) -> None:
    posts = CanonicalLookup(fake_store, recording_cache, LookupConfig(object_type="post"))
    terms = CanonicalLookup(fake_store, recording_cache, LookupConfig(object_type="term"))
    _add_entity(fake_store, 1, 7, 3)
    fake_store.add(50, CANONICAL_ID_FIELD, 7, object_type="term")
    fake_store.add(50, CANONICAL_SITE_ID_FIELD, 3, object_type="term")

    assert posts.resolve(7, 3) == 1
    assert terms.resolve(7, 3) == 50
    assert posts.config.cache_group != terms.config.cache_group
