"""Tests for the TTL entry cache."""
from __future__ import annotations

import logging
import threading

import pytest

from subtitle_ingest.cache.entities import EntityCache
from subtitle_ingest.cache.entry_cache import EntryCache
from subtitle_ingest.cache.keys import filehash_key, split_key, subtitle_key, video_key
from tests.fakes import FakeClock


class CopiesOnce:
    """Value whose deep copy succeeds once per token in ``budget``."""

    def __init__(self, budget):
        self.budget = budget

    def __deepcopy__(self, memo):
        if not self.budget:
            raise RuntimeError("copy budget exhausted")
        self.budget.pop()
        return CopiesOnce(self.budget)


class TestSetGet:
    """Basic storage and expiry under a simulated clock."""

    def test_get_after_set(self, cache: EntryCache):
        assert cache.set("video:1", {"title": "a"})
        assert cache.get("video:1") == {"title": "a"}

    def test_get_never_set_is_miss(self, cache: EntryCache):
        assert cache.get("video:missing") is None

    def test_replace_value(self, cache: EntryCache):
        cache.set("k", 1)
        cache.set("k", 2)
        assert cache.get("k") == 2
        assert len(cache) == 1

    def test_expires_at_ttl_boundary(self, cache: EntryCache, clock: FakeClock):
        cache.set("k", "v", ttl_seconds=10)

        clock.advance(9)
        assert cache.get("k") == "v"

        clock.advance(1)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_default_ttl_applies(self, cache: EntryCache, clock: FakeClock):
        cache.set("k", "v")
        clock.advance(3599)
        assert cache.has("k")
        clock.advance(1)
        assert not cache.has("k")

    @pytest.mark.parametrize("ttl", [0, -5])
    def test_non_positive_ttl_is_expired_immediately(self, cache: EntryCache, ttl):
        cache.set("k", "v", ttl_seconds=ttl)
        assert cache.get("k") is None

    def test_values_are_copied(self, cache: EntryCache):
        original = {"ids": [1, 2]}
        cache.set("k", original)
        original["ids"].append(3)

        fetched = cache.get("k")
        assert fetched == {"ids": [1, 2]}
        fetched["ids"].append(99)
        assert cache.get("k") == {"ids": [1, 2]}

    def test_uncopyable_value_is_swallowed(self, cache: EntryCache, caplog):
        lock = threading.Lock()
        assert cache.set("k", lock) is False
        assert cache.get("k") is None
        assert any("Cache set error" in r.message for r in caplog.records)

    def test_failed_read_copy_counts_as_miss(self, cache: EntryCache, caplog):
        cache.set("k", CopiesOnce([None]))

        assert cache.get("k") is None
        stats = cache.get_stats()
        assert stats.hits == 0
        assert stats.misses == 1
        assert any("Cache get error" in r.message for r in caplog.records)

    def test_peek_does_not_count(self, cache: EntryCache):
        cache.set("k", "v")
        assert cache.peek("k") == "v"
        stats = cache.get_stats()
        assert stats.hits == 0
        assert stats.misses == 0


class TestDelete:
    def test_delete_existing(self, cache: EntryCache):
        cache.set("k", "v")
        assert cache.delete("k") is True
        assert cache.get("k") is None

    def test_delete_absent_is_noop(self, cache: EntryCache):
        assert cache.delete("nope") is False

    def test_delete_pattern_only_matches_namespace(self, cache: EntryCache):
        cache.set("video:a", 1)
        cache.set("video:b", 2)
        cache.set("subtitle:a", 3)
        cache.set("filehash:abc", 4)
        cache.set("subtitle:video:x", 5)

        assert cache.delete_pattern("video:*") == 2
        assert cache.get("video:a") is None
        assert cache.get("video:b") is None
        assert cache.get("subtitle:a") == 3
        assert cache.get("filehash:abc") == 4
        assert cache.get("subtitle:video:x") == 5

    def test_delete_pattern_no_match(self, cache: EntryCache):
        cache.set("video:a", 1)
        assert cache.delete_pattern("audio:*") == 0
        assert len(cache) == 1

    def test_clear(self, cache: EntryCache):
        for i in range(5):
            cache.set(f"video:{i}", i)
        assert cache.clear() == 5
        assert len(cache) == 0


class TestKeysAndStats:
    def test_keys_excludes_expired(self, cache: EntryCache, clock: FakeClock):
        cache.set("video:a", 1, ttl_seconds=5)
        cache.set("video:b", 2, ttl_seconds=50)
        cache.set("subtitle:a", 3, ttl_seconds=50)
        clock.advance(10)

        assert cache.keys("video:*") == ["video:b"]
        assert sorted(cache.keys()) == ["subtitle:a", "video:b"]

    def test_stats_counts(self, cache: EntryCache):
        cache.set("video:a", 1)
        cache.set("filehash:f", 2)
        cache.get("video:a")
        cache.get("video:a")
        cache.get("video:zzz")

        stats = cache.get_stats()
        assert stats.hits == 2
        assert stats.misses == 1
        assert stats.entry_count == 2
        assert stats.keys_by_prefix == {"video": 1, "filehash": 1}
        assert stats.hit_rate == pytest.approx(66.666, rel=1e-3)
        assert stats.to_dict()["hit_rate"] == "66.7%"

    def test_hit_rate_without_lookups(self, cache: EntryCache):
        assert cache.get_stats().hit_rate == 0.0


class TestExpiryAndEviction:
    def test_cleanup_expired(self, cache: EntryCache, clock: FakeClock, caplog):
        cache.set("a", 1, ttl_seconds=5)
        cache.set("b", 2, ttl_seconds=5)
        cache.set("c", 3, ttl_seconds=500)
        clock.advance(6)

        with caplog.at_level(logging.INFO):
            assert cache.cleanup_expired() == 2
        assert len(cache) == 1
        assert cache.get_stats().expirations == 2
        assert any("removed 2 expired items" in r.message for r in caplog.records)

    def test_lru_eviction_when_full(self, clock: FakeClock):
        cache = EntryCache(default_ttl=100, max_items=3, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("c", 3)
        cache.get("a")  # b becomes least recently used

        cache.set("d", 4)

        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert cache.get("d") == 4
        assert cache.get_stats().evictions == 1

    def test_expired_entry_evicted_before_lru(self, clock: FakeClock):
        cache = EntryCache(default_ttl=100, max_items=2, clock=clock)
        cache.set("old", 1)
        cache.set("short", 2, ttl_seconds=1)
        clock.advance(2)

        cache.set("new", 3)

        assert cache.get("old") == 1
        assert cache.get("new") == 3
        assert cache.get_stats().evictions == 0

    def test_replacing_key_in_full_cache_does_not_evict(self, clock: FakeClock):
        cache = EntryCache(default_ttl=100, max_items=2, clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 10)
        assert cache.get("b") == 2
        assert cache.get("a") == 10

    def test_invalid_max_items(self):
        with pytest.raises(ValueError):
            EntryCache(max_items=0)


class TestCleanupTimer:
    def test_start_and_stop(self):
        cache = EntryCache(default_ttl=60)
        cache.start_cleanup_timer(interval_seconds=30)
        try:
            assert cache.cleanup_running
            cache.start_cleanup_timer(interval_seconds=30)  # second start is a no-op
        finally:
            cache.stop_cleanup_timer()
        assert not cache.cleanup_running

    def test_rejects_non_positive_interval(self, cache: EntryCache):
        with pytest.raises(ValueError):
            cache.start_cleanup_timer(0)


class TestConcurrentAccess:
    def test_parallel_writers(self):
        cache = EntryCache(default_ttl=60, max_items=10_000)

        def writer(prefix: str) -> None:
            for i in range(500):
                cache.set(f"{prefix}:{i}", i)
                cache.get(f"{prefix}:{i}")

        threads = [threading.Thread(target=writer, args=(f"p{n}",)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 2000
        assert cache.get_stats().hits == 2000


class TestKeys:
    def test_key_contract(self):
        assert video_key("v1") == "video:v1"
        assert subtitle_key("v1") == "subtitle:v1"
        assert filehash_key("ab") == "filehash:ab"

    def test_split_key(self):
        assert split_key("video:a:b") == ("video", "a:b")
        assert split_key("plain") == ("", "plain")


class TestEntityCache:
    def test_video_and_subtitle_round_trip(self, cache: EntryCache):
        entities = EntityCache(cache)
        entities.cache_video("v1", {"file_name": "a.mp4"})
        entities.cache_subtitle("v1", {"content": "WEBVTT"})

        assert entities.get_cached_video("v1") == {"file_name": "a.mp4"}
        assert entities.get_cached_subtitle("v1") == {"content": "WEBVTT"}

    def test_invalidate_video_drops_both(self, cache: EntryCache):
        entities = EntityCache(cache)
        entities.cache_video("v1", {})
        entities.cache_subtitle("v1", {})
        entities.cache_video("v2", {})

        entities.invalidate_video("v1")

        assert entities.get_cached_video("v1") is None
        assert entities.get_cached_subtitle("v1") is None
        assert entities.get_cached_video("v2") == {}

    def test_bulk_invalidation_keeps_file_hashes(self, cache: EntryCache):
        entities = EntityCache(cache)
        entities.cache_video("v1", {})
        entities.cache_subtitle("v1", {})
        cache.set(filehash_key("f" * 64), {"video_id": "v1"})

        assert entities.invalidate_all_videos() == 1
        assert entities.invalidate_all_subtitles() == 1
        assert cache.has(filehash_key("f" * 64))
