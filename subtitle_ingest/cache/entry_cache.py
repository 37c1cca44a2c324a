"""Process-wide TTL cache with glob-pattern invalidation.

``EntryCache`` is the single in-memory store shared by the entity helpers and the
deduplication index. It keeps entries in an ``OrderedDict`` maintained in access
order, so the least recently used entry is always first, and guards every map
access with one ``RLock``.

Failure policy:
    The cache is an optimisation, never a source of truth. Every public method
    catches its own failures, logs them and returns a neutral value (``None``,
    ``False`` or ``0``). Callers never see a cache exception.

Expiry:
    Entries carry an absolute ``expires_at`` computed from an injectable clock.
    An entry whose ``expires_at`` has been reached is treated as absent and is
    purged on access; ``cleanup_expired`` sweeps proactively, optionally from a
    background daemon thread.
"""
from __future__ import annotations

import copy
import fnmatch
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..exceptions import CacheFailure
from .eviction import select_expired_keys, select_victim
from .keys import split_key

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600
DEFAULT_MAX_ITEMS = 1000
DEFAULT_CLEANUP_INTERVAL = 300.0


@dataclass
class CacheEntry:
    """A cached value with its expiry bookkeeping."""

    key: str
    value: Any
    created_at: float
    expires_at: float
    accessed_at: float = 0.0
    access_count: int = 0

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def touch(self, now: float) -> None:
        self.accessed_at = now
        self.access_count += 1

    def ttl_remaining(self, now: float) -> float:
        return max(0.0, self.expires_at - now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
            "accessed_at": self.accessed_at,
            "access_count": self.access_count,
        }


@dataclass
class CacheStats:
    """Cache counters at a point in time."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0
    entry_count: int = 0
    keys_by_prefix: Dict[str, int] = field(default_factory=dict)

    @property
    def hit_rate(self) -> float:
        """Hit rate as a percentage of all lookups."""
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": f"{self.hit_rate:.1f}%",
            "evictions": self.evictions,
            "expirations": self.expirations,
            "entry_count": self.entry_count,
            "keys_by_prefix": dict(self.keys_by_prefix),
        }


class EntryCache:
    """Thread-safe TTL cache with LRU bound and glob invalidation.

    Values are deep-copied on the way in and on the way out, so callers can never
    mutate a cached value through a reference they hold.

    Attributes:
        default_ttl: TTL in seconds applied when ``set`` receives none
        max_items: Entry count bound; inserting a new key into a full cache
            evicts an expired entry, or the least recently used one
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        max_items: int = DEFAULT_MAX_ITEMS,
        clock: Optional[Callable[[], float]] = None,
    ):
        """Initialize the cache.

        Args:
            default_ttl: Default time-to-live in seconds
            max_items: Maximum number of entries held at once
            clock: Monotonic clock returning seconds; defaults to ``time.monotonic``
        """
        if max_items < 1:
            raise ValueError("max_items must be at least 1")

        self.default_ttl = default_ttl
        self.max_items = max_items
        self._clock = clock or time.monotonic
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.RLock()
        self._stats = CacheStats()

        self._cleanup_thread: Optional[threading.Thread] = None
        self._cleanup_stop = threading.Event()

        logger.info(
            f"Initialized EntryCache with default_ttl={default_ttl}s, max_items={max_items}"
        )

    @classmethod
    def from_settings(cls, settings) -> "EntryCache":
        """Build a cache from ``CacheSettings``, starting the cleanup thread if enabled."""
        cache = cls(default_ttl=settings.default_ttl, max_items=settings.max_items)
        if settings.enable_cleanup:
            cache.start_cleanup_timer(settings.cleanup_interval)
        return cache

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> bool:
        """Insert or replace a value.

        Args:
            key: Cache key
            value: Value to store (deep-copied)
            ttl_seconds: Time-to-live; defaults to ``default_ttl``. Zero or a
                negative value stores an entry that is already expired.

        Returns:
            True if the value was stored
        """
        try:
            ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
            stored = self._copy(value)
            with self._lock:
                now = self._clock()
                if key in self._entries:
                    del self._entries[key]
                elif len(self._entries) >= self.max_items:
                    self._make_room(now)
                self._entries[key] = CacheEntry(
                    key=key,
                    value=stored,
                    created_at=now,
                    expires_at=now + ttl,
                    accessed_at=now,
                )
            logger.debug(f"Cache set: {key} (ttl={ttl}s)")
            return True
        except Exception as e:
            logger.error(f"Cache set error for key {key}: {e}")
            return False

    def get(self, key: str) -> Optional[Any]:
        """Retrieve a live value, purging it if it has expired.

        Args:
            key: Cache key

        Returns:
            A copy of the cached value, or None on miss
        """
        try:
            with self._lock:
                entry = self._entries.get(key)
                if entry is None:
                    self._stats.misses += 1
                    logger.debug(f"Cache miss: {key}")
                    return None

                now = self._clock()
                if entry.is_expired(now):
                    del self._entries[key]
                    self._stats.expirations += 1
                    self._stats.misses += 1
                    logger.debug(f"Cache miss (expired): {key}")
                    return None

                try:
                    value = self._copy(entry.value)
                except CacheFailure:
                    self._stats.misses += 1
                    raise
                entry.touch(now)
                self._entries.move_to_end(key)
                self._stats.hits += 1
            logger.debug(f"Cache hit: {key}")
            return value
        except Exception as e:
            logger.error(f"Cache get error for key {key}: {e}")
            return None

    def peek(self, key: str) -> Optional[Any]:
        """Read a live value without touching stats or LRU order."""
        try:
            with self._lock:
                entry = self._entries.get(key)
                if entry is None or entry.is_expired(self._clock()):
                    return None
                value = entry.value
            return self._copy(value)
        except Exception as e:
            logger.error(f"Cache peek error for key {key}: {e}")
            return None

    def has(self, key: str) -> bool:
        """Check whether a live entry exists."""
        try:
            with self._lock:
                entry = self._entries.get(key)
                return entry is not None and not entry.is_expired(self._clock())
        except Exception as e:
            logger.error(f"Cache has error for key {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        """Remove a key. Removing an absent key is a no-op.

        Returns:
            True if an entry was removed
        """
        try:
            with self._lock:
                removed = self._entries.pop(key, None) is not None
            if removed:
                logger.debug(f"Cache delete: {key}")
            return removed
        except Exception as e:
            logger.error(f"Cache delete error for key {key}: {e}")
            return False

    def delete_pattern(self, pattern: str) -> int:
        """Remove every key matching a glob pattern.

        The pattern must match the whole key; ``*`` matches any run of
        characters, so ``video:*`` removes ``video:abc`` but not
        ``subtitle:video:abc``.

        Args:
            pattern: Glob pattern, e.g. ``"video:*"``

        Returns:
            Number of keys removed
        """
        try:
            with self._lock:
                matched = [k for k in self._entries if fnmatch.fnmatchcase(k, pattern)]
                for key in matched:
                    del self._entries[key]
            if matched:
                logger.info(f"Cache invalidated {len(matched)} keys matching {pattern}")
            return len(matched)
        except Exception as e:
            logger.error(f"Cache delete pattern error for {pattern}: {e}")
            return 0

    def keys(self, pattern: Optional[str] = None) -> List[str]:
        """List live keys, optionally filtered by a glob pattern."""
        try:
            with self._lock:
                now = self._clock()
                return [
                    key
                    for key, entry in self._entries.items()
                    if not entry.is_expired(now)
                    and (pattern is None or fnmatch.fnmatchcase(key, pattern))
                ]
        except Exception as e:
            logger.error(f"Cache keys error: {e}")
            return []

    def clear(self) -> int:
        """Remove every entry.

        Returns:
            Number of entries removed
        """
        try:
            with self._lock:
                count = len(self._entries)
                self._entries.clear()
            logger.info(f"Cache cleared: {count} entries")
            return count
        except Exception as e:
            logger.error(f"Cache clear error: {e}")
            return 0

    def cleanup_expired(self) -> int:
        """Sweep every expired entry.

        Returns:
            Number of entries removed
        """
        try:
            with self._lock:
                expired = select_expired_keys(self._entries, self._clock())
                for key in expired:
                    del self._entries[key]
                self._stats.expirations += len(expired)
            if expired:
                logger.info(f"Cache cleanup: removed {len(expired)} expired items")
            return len(expired)
        except Exception as e:
            logger.error(f"Cache cleanup error: {e}")
            return 0

    def get_stats(self) -> CacheStats:
        """Snapshot of the cache counters."""
        try:
            with self._lock:
                by_prefix: Dict[str, int] = {}
                for key in self._entries:
                    prefix, _ = split_key(key)
                    by_prefix[prefix] = by_prefix.get(prefix, 0) + 1
                return CacheStats(
                    hits=self._stats.hits,
                    misses=self._stats.misses,
                    evictions=self._stats.evictions,
                    expirations=self._stats.expirations,
                    entry_count=len(self._entries),
                    keys_by_prefix=by_prefix,
                )
        except Exception as e:
            logger.error(f"Cache stats error: {e}")
            return CacheStats()

    def start_cleanup_timer(self, interval_seconds: float = DEFAULT_CLEANUP_INTERVAL) -> None:
        """Run ``cleanup_expired`` every ``interval_seconds`` on a daemon thread."""
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        with self._lock:
            if self._cleanup_thread is not None and self._cleanup_thread.is_alive():
                return
            self._cleanup_stop.clear()
            self._cleanup_thread = threading.Thread(
                target=self._cleanup_loop,
                args=(interval_seconds,),
                name="entry-cache-cleanup",
                daemon=True,
            )
            self._cleanup_thread.start()
        logger.info(f"Cache cleanup timer started (interval={interval_seconds}s)")

    def stop_cleanup_timer(self, timeout: Optional[float] = 5.0) -> None:
        """Stop the background cleanup thread, if running."""
        self._cleanup_stop.set()
        thread = self._cleanup_thread
        if thread is not None:
            thread.join(timeout)
            self._cleanup_thread = None
            logger.info("Cache cleanup timer stopped")

    @property
    def cleanup_running(self) -> bool:
        thread = self._cleanup_thread
        return thread is not None and thread.is_alive()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def _cleanup_loop(self, interval_seconds: float) -> None:
        while not self._cleanup_stop.wait(interval_seconds):
            self.cleanup_expired()

    def _make_room(self, now: float) -> None:
        """Drop one entry so a new key fits. Caller holds the lock."""
        victim = select_victim(self._entries, now)
        if victim is None:
            return
        entry = self._entries.pop(victim)
        if entry.is_expired(now):
            self._stats.expirations += 1
        else:
            self._stats.evictions += 1
            logger.debug(f"Cache evicted LRU entry: {victim}")

    @staticmethod
    def _copy(value: Any) -> Any:
        try:
            return copy.deepcopy(value)
        except Exception as e:
            raise CacheFailure(f"value is not copyable: {e}") from e
