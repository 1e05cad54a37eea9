"""Tests for the in-process LRU cache tier."""

from datetime import UTC, datetime, timedelta

import pytest
from picks_odds.cache.entry import CacheEntry
from picks_odds.cache.memory import MemoryTier


@pytest.fixture
def tier():
    return MemoryTier(max_items=3, max_bytes=50 * 1024 * 1024, default_ttl_seconds=300)


class TestLruEviction:
    """Least recently accessed entries are evicted first."""

    def test_oldest_access_is_evicted(self, tier):
        tier.put("a", 1)
        tier.put("b", 2)
        tier.put("c", 3)

        # Reading "a" makes "b" the least recently accessed
        assert tier.lookup("a").data == 1

        tier.put("d", 4)

        assert "b" not in tier
        assert tier.lookup("a").data == 1
        assert tier.lookup("c").data == 3
        assert tier.lookup("d").data == 4
        assert tier.evictions == 1

    def test_insert_order_without_reads(self, tier):
        for key in ["a", "b", "c", "d"]:
            tier.put(key, key)

        assert tier.keys() == ["b", "c", "d"]

    def test_replacing_existing_key_does_not_evict(self, tier):
        tier.put("a", 1)
        tier.put("b", 2)
        tier.put("c", 3)
        tier.put("a", 10)

        assert len(tier) == 3
        assert tier.evictions == 0
        assert tier.lookup("a").data == 10

    def test_byte_limit_evicts_until_entry_fits(self):
        tier = MemoryTier(max_items=100, max_bytes=10_000, default_ttl_seconds=300)
        payload = "x" * 2000

        tier.put("a", payload)
        tier.put("b", payload)
        tier.put("c", payload)

        assert "a" not in tier
        assert "b" in tier and "c" in tier
        assert tier.usage_bytes <= 10_000
        assert tier.evictions == 1

    def test_entry_larger_than_byte_limit_is_not_stored(self):
        tier = MemoryTier(max_items=10, max_bytes=500, default_ttl_seconds=300)
        tier.put("small", "x")

        assert tier.put("big", "y" * 1000) is None

        assert tier.keys() == ["small"]
        assert tier.usage_bytes <= 500
        assert tier.evictions == 0

    def test_oversized_replacement_drops_previous_value(self):
        tier = MemoryTier(max_items=10, max_bytes=500, default_ttl_seconds=300)
        tier.put("k", "x")

        tier.put("k", "y" * 1000)

        assert "k" not in tier
        assert tier.usage_bytes == 0


class TestExpiry:
    """Expired entries are purged lazily or by the sweep."""

    def test_expired_lookup_is_miss_and_counts_eviction(self, tier):
        now = datetime.now(UTC)
        tier.put("a", 1, ttl_seconds=1, now=now)

        assert tier.lookup("a", now=now + timedelta(seconds=2)) is None
        assert "a" not in tier
        assert tier.evictions == 1

    def test_purge_expired_removes_only_expired(self, tier):
        now = datetime.now(UTC)
        tier.put("short", 1, ttl_seconds=1, now=now)
        tier.put("long", 2, ttl_seconds=600, now=now)

        removed = tier.purge_expired(now + timedelta(seconds=5))

        assert removed == 1
        assert tier.keys() == ["long"]

    def test_usage_tracks_removals(self, tier):
        tier.put("a", {"spread": -3.5})
        assert tier.usage_bytes > 0

        tier.remove("a")
        assert tier.usage_bytes == 0


class TestTags:
    def test_remove_by_tags_intersects(self, tier):
        tier.put("a", 1, tags={"A"})
        tier.put("b", 2, tags={"A", "B"})
        tier.put("c", 3, tags={"B"})

        assert tier.remove_by_tags(["A"]) == 2
        assert tier.keys() == ["c"]


class TestCacheEntry:
    def test_expiry_must_follow_creation(self):
        now = datetime.now(UTC)
        with pytest.raises(ValueError):
            CacheEntry(key="k", data=1, expires_at=now, created_at=now, last_accessed_at=now)

    def test_touch_increments_hit_count(self):
        now = datetime.now(UTC)
        entry = CacheEntry(
            key="k",
            data=1,
            expires_at=now + timedelta(minutes=5),
            created_at=now,
            last_accessed_at=now,
        )
        later = now + timedelta(seconds=10)

        entry.touch(later)

        assert entry.hit_count == 1
        assert entry.last_accessed_at == later
