"""In-memory caching layer.

Components:
    - EntryCache: thread-safe TTL cache with LRU bound and glob invalidation
    - EntityCache: ``video:`` / ``subtitle:`` helpers on top of an EntryCache
    - keys: the key naming contract shared with the deduplication index
"""

from .entities import EntityCache
from .entry_cache import CacheEntry, CacheStats, EntryCache
from .keys import filehash_key, subtitle_key, video_key

__all__ = [
    "CacheEntry",
    "CacheStats",
    "EntityCache",
    "EntryCache",
    "filehash_key",
    "subtitle_key",
    "video_key",
]
