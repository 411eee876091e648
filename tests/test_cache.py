"""
Tests for TTLCache: TTL boundary, cleanup sweep and oldest-first eviction.
"""

import pytest

from src.drug_relevance.utils.cache import TTLCache

TTL = 24 * 60 * 60


class TestTTL:
    """Entries are valid strictly before ttl seconds of age."""

    def test_hit_just_before_ttl(self, clock):
        cache = TTLCache(name="t", ttl_seconds=TTL, clock=clock)
        cache.set("type 2 diabetes", ["metformin"])

        clock.advance(TTL - 0.001)
        assert cache.get("type 2 diabetes") == ["metformin"]

    def test_miss_just_after_ttl(self, clock):
        cache = TTLCache(name="t", ttl_seconds=TTL, clock=clock)
        cache.set("type 2 diabetes", ["metformin"])

        clock.advance(TTL + 0.001)
        assert cache.get("type 2 diabetes") is None

    def test_expired_read_deletes_and_counts_miss(self, clock):
        cache = TTLCache(name="t", ttl_seconds=10, clock=clock)
        cache.set("k", [1])
        clock.advance(11)

        assert cache.get("k") is None
        assert len(cache) == 0
        stats = cache.get_stats()
        assert stats["misses"] == 1
        assert stats["expirations"] == 1

    def test_replacing_resets_age(self, clock):
        cache = TTLCache(name="t", ttl_seconds=10, clock=clock)
        cache.set("k", "old")
        clock.advance(8)
        cache.set("k", "new")
        clock.advance(8)

        assert cache.get("k") == "new"
        assert cache.age_seconds("k") == pytest.approx(8)

    def test_empty_list_is_a_hit(self, clock):
        cache = TTLCache(name="t", ttl_seconds=10, clock=clock)
        cache.set("k", [])
        assert cache.get("k") == []


class TestEviction:
    """Size ceiling and cleanup behaviour."""

    def test_inserting_past_ceiling_evicts_oldest(self, clock):
        cache = TTLCache(name="t", ttl_seconds=TTL, max_size=3, clock=clock)
        for key in ("a", "b", "c"):
            cache.set(key, key)
            clock.advance(1)

        cache.set("d", "d")

        assert len(cache) == 3
        assert sorted(cache.keys()) == ["b", "c", "d"]
        assert cache.get_stats()["evictions"] == 1

    def test_size_never_exceeds_ceiling(self, clock):
        cache = TTLCache(name="t", ttl_seconds=TTL, max_size=5, clock=clock)
        for i in range(50):
            cache.set(f"k{i}", i)
            clock.advance(1)
            assert len(cache) <= 5
        assert sorted(cache.keys()) == sorted(f"k{i}" for i in range(45, 50))

    def test_replacing_existing_key_when_full_does_not_evict(self, clock):
        cache = TTLCache(name="t", ttl_seconds=TTL, max_size=3, clock=clock)
        for key in ("a", "b", "c"):
            cache.set(key, key)
            clock.advance(1)

        cache.set("b", "b2")

        assert sorted(cache.keys()) == ["a", "b", "c"]
        assert cache.get("b") == "b2"
        assert cache.get_stats()["evictions"] == 0

    def test_cleanup_removes_expired_before_evicting(self, clock):
        cache = TTLCache(name="t", ttl_seconds=10, max_size=3, clock=clock)
        for key in ("a", "b", "c"):
            cache.set(key, key)
            clock.advance(1)

        # a is 10.5s old (expired); b and c are still live
        clock.advance(7.5)
        cache.set("d", "d")

        assert sorted(cache.keys()) == ["b", "c", "d"]
        stats = cache.get_stats()
        assert stats["evictions"] == 0
        assert stats["expirations"] == 1


class TestStats:
    """Tests for cache_stats(), get_stats() and clear()."""

    def test_cache_stats_counts_valid_and_expired(self, clock):
        cache = TTLCache(name="t", ttl_seconds=10, clock=clock)
        cache.set("old", 1)
        clock.advance(11)
        cache.set("new", 2)

        stats = cache.cache_stats()
        assert (stats.total, stats.valid, stats.expired) == (2, 1, 1)

    def test_hit_rate(self, clock):
        cache = TTLCache(name="t", clock=clock)
        cache.set("k", 1)
        cache.get("k")
        cache.get("missing")

        stats = cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 50.0

    def test_clear_returns_removed_count(self, clock):
        cache = TTLCache(name="t", clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)

        assert cache.clear() == 2
        assert len(cache) == 0

    def test_entry_keeps_source_label(self, clock):
        cache = TTLCache(name="t", clock=clock)
        cache.set("fabry disease", ["agalsidase beta"], source_label="Fabry disease")

        entry = cache.get_entry("fabry disease")
        assert entry.source_label == "Fabry disease"
        assert entry.created_at == clock.now
        assert "fabry disease" in cache
