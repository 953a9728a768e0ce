"""Tests for the tiered lookup cache."""

from __future__ import annotations

import orjson
import pytest

from discshelf.services.cache import JSONFileStore, MemoryStore, TieredCache
from discshelf.shared.errors import CapacityExceededError

# Serialises to roughly 400 bytes with its expiry
PAYLOAD_400 = "x" * 360


def entry_size(cache: TieredCache, namespace: str, key: str) -> int:
    raw = cache.store.get_item(cache._entry_key(namespace, key))
    assert raw is not None
    return len(raw)


class TestGetAndSet:
    """Basic reads and writes."""

    def test_set_then_get_returns_payload(self, make_cache):
        cache = make_cache()

        assert cache.set("upc", "012345678905", {"title": "The Matrix"}) is True

        assert cache.get("upc", "012345678905") == {"title": "The Matrix"}

    def test_missing_key_is_a_miss(self, make_cache):
        cache = make_cache()

        assert cache.get("upc", "missing") is None
        assert cache.stats().misses == 1

    def test_namespaces_are_isolated(self, make_cache):
        cache = make_cache()
        cache.set("upc", "k", 1)
        cache.set("search", "k", 2)

        assert cache.get("upc", "k") == 1
        assert cache.get("search", "k") == 2

    def test_storage_layout_uses_prefix_and_index_keys(self, make_cache):
        cache = make_cache(prefix="discshelf_")
        cache.set("upc", "123", {"a": 1})

        keys = set(cache.store.keys())
        assert "discshelf_upc_123" in keys
        assert "discshelf__index_upc" in keys

        stored = orjson.loads(cache.store.get_item("discshelf_upc_123"))
        assert stored["payload"] == {"a": 1}
        assert "expiresAt" in stored

        index = orjson.loads(cache.store.get_item("discshelf__index_upc"))
        assert set(index["123"]) == {"sizeBytes", "lastUsedAt"}

    def test_entry_size_is_serialised_length(self, make_cache):
        cache = make_cache()
        cache.set("upc", "k", PAYLOAD_400)

        index = orjson.loads(cache.store.get_item(cache._index_key("upc")))

        assert index["k"]["sizeBytes"] == entry_size(cache, "upc", "k")

    def test_unserialisable_value_is_dropped(self, make_cache):
        cache = make_cache()

        assert cache.set("upc", "k", object()) is False
        assert cache.get("upc", "k") is None

    def test_persistent_tier_survives_new_instance(self, make_cache):
        store = MemoryStore()
        make_cache(store=store).set("upc", "k", {"title": "Heat"})

        fresh = make_cache(store=store)

        assert fresh.get("upc", "k") == {"title": "Heat"}


class TestExpiry:
    """Per-item time-to-live."""

    def test_entry_is_valid_at_expiry_instant(self, make_cache, clock):
        cache = make_cache()
        cache.set("upc", "k", "v", ttl=10)

        clock.advance(10)

        assert cache.get("upc", "k") == "v"

    def test_get_after_expiry_returns_none_and_removes_entry(self, make_cache, clock):
        cache = make_cache()
        cache.set("upc", "k", "v", ttl=10)

        clock.advance(10.001)

        assert cache.get("upc", "k") is None
        assert cache.store.get_item(cache._entry_key("upc", "k")) is None
        assert cache.total_bytes() == 0

    def test_default_ttl_applies(self, make_cache, clock):
        cache = make_cache(default_ttl=5)
        cache.set("upc", "k", "v")

        clock.advance(6)

        assert cache.get("upc", "k") is None


class TestLRUEviction:
    """Global least-recently-used eviction."""

    def test_recently_read_entry_survives(self, make_cache, clock):
        cache = make_cache(max_size_bytes=1000)

        cache.set("upc", "A", PAYLOAD_400)
        clock.advance(1)
        cache.set("upc", "B", PAYLOAD_400)
        clock.advance(1)
        assert cache.get("upc", "A") == PAYLOAD_400
        clock.advance(1)
        cache.set("upc", "C", PAYLOAD_400)

        assert cache.get("upc", "B") is None
        assert cache.get("upc", "A") == PAYLOAD_400
        assert cache.get("upc", "C") == PAYLOAD_400
        assert cache.stats().evictions == 1

    def test_eviction_spans_namespaces(self, make_cache, clock):
        cache = make_cache(max_size_bytes=1000)

        cache.set("search", "old", PAYLOAD_400)
        clock.advance(1)
        cache.set("upc", "newer", PAYLOAD_400)
        clock.advance(1)
        cache.set("details", "newest", PAYLOAD_400)

        assert cache.get("search", "old") is None
        assert cache.get("upc", "newer") == PAYLOAD_400
        assert cache.get("details", "newest") == PAYLOAD_400

    def test_total_stays_under_ceiling(self, make_cache, clock):
        cache = make_cache(max_size_bytes=1000)

        for index in range(10):
            cache.set("upc", f"k{index}", PAYLOAD_400)
            clock.advance(1)

        assert cache.total_bytes() <= 1000
        assert cache.get("upc", "k9") == PAYLOAD_400
        assert cache.get("upc", "k8") == PAYLOAD_400
        assert cache.get("upc", "k0") is None


class TestCorruption:
    """Unreadable entries never propagate."""

    def test_corrupt_entry_is_a_miss_and_removed(self, make_cache):
        cache = make_cache()
        key = cache._entry_key("upc", "k")
        cache.store.set_item(key, b"{not json")

        assert cache.get("upc", "k") is None
        assert cache.store.get_item(key) is None

    def test_corrupt_index_is_treated_as_empty(self, make_cache):
        cache = make_cache()
        cache.store.set_item(cache._index_key("upc"), b"[broken")

        assert cache.set("upc", "k", "v") is True
        assert cache.get("upc", "k") == "v"


class TestCapacity:
    """Store quota handling."""

    def test_capacity_error_forces_eviction_and_retry(self, make_cache, clock):
        cache = make_cache(store=MemoryStore(quota_bytes=1000))

        cache.set("upc", "A", PAYLOAD_400)
        clock.advance(1)
        cache.set("upc", "B", PAYLOAD_400)
        clock.advance(1)

        assert cache.set("upc", "C", PAYLOAD_400) is True

        assert cache.get("upc", "A") is None
        assert cache.get("upc", "B") == PAYLOAD_400
        assert cache.get("upc", "C") == PAYLOAD_400

    def test_write_dropped_when_retry_fails(self, make_cache):
        cache = make_cache(store=MemoryStore(quota_bytes=50))

        assert cache.set("upc", "big", PAYLOAD_400) is False
        assert cache.get("upc", "big") is None

    def test_memory_store_raises_over_quota(self):
        store = MemoryStore(quota_bytes=10)

        with pytest.raises(CapacityExceededError):
            store.set_item("k", b"x" * 11)


class TestRemoveClearStats:
    """Removal, clearing and statistics."""

    def test_remove_reports_existence(self, make_cache):
        cache = make_cache()
        cache.set("upc", "k", "v")

        assert cache.remove("upc", "k") is True
        assert cache.remove("upc", "k") is False

    def test_clear_namespace_only(self, make_cache):
        cache = make_cache()
        cache.set("upc", "a", 1)
        cache.set("upc", "b", 2)
        cache.set("search", "c", 3)

        assert cache.clear("upc") == 2
        assert cache.get("upc", "a") is None
        assert cache.get("search", "c") == 3

    def test_clear_all_leaves_foreign_keys(self, make_cache):
        store = MemoryStore()
        store.set_item("other_app_key", b"keep")
        cache = make_cache(store=store)
        cache.set("upc", "a", 1)
        cache.set("search", "b", 2)

        assert cache.clear() == 2
        assert store.keys() == ["other_app_key"]

    def test_stats_counts(self, make_cache):
        cache = make_cache(max_size_bytes=2 * 1024 * 1024)
        cache.set("upc", "a", 1)
        cache.get("upc", "a")
        cache.get("upc", "missing")

        stats = cache.stats()

        assert stats.hits == 1
        assert stats.misses == 1
        assert stats.sets == 1
        assert stats.total_bytes > 0
        assert stats.max_mb == 2.0
        assert stats.hit_rate == 50.0


class TestJSONFileStore:
    """Directory-backed store."""

    def test_round_trip_with_arbitrary_key(self, tmp_path):
        store = JSONFileStore(tmp_path)
        key = 'discshelf_search_"the matrix" 1999|1'

        store.set_item(key, b'{"a":1}')

        assert store.get_item(key) == b'{"a":1}'
        assert store.keys() == [key]

    def test_remove_missing_key_is_silent(self, tmp_path):
        store = JSONFileStore(tmp_path)

        store.remove_item("nope")

        assert store.get_item("nope") is None

    def test_quota_enforced(self, tmp_path):
        store = JSONFileStore(tmp_path, quota_bytes=5)

        with pytest.raises(CapacityExceededError):
            store.set_item("k", b"123456")

    def test_cache_persists_to_disk(self, tmp_path, clock):
        TieredCache(JSONFileStore(tmp_path), clock=clock).set("upc", "k", {"title": "Alien"})

        reopened = TieredCache(JSONFileStore(tmp_path), clock=clock)

        assert reopened.get("upc", "k") == {"title": "Alien"}
