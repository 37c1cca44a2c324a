"""Per-entity cache helpers for videos and subtitles."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .entry_cache import EntryCache
from .keys import (
    SUBTITLE_PREFIX,
    VIDEO_PREFIX,
    prefix_pattern,
    subtitle_key,
    video_key,
)

logger = logging.getLogger(__name__)


class EntityCache:
    """Video and subtitle lookups on top of a shared :class:`EntryCache`.

    Entity entries use the cache's default TTL. Bulk invalidation only touches
    the ``video:`` and ``subtitle:`` namespaces, never fingerprint records.
    """

    def __init__(self, cache: EntryCache, ttl_seconds: Optional[float] = None):
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    def cache_video(self, video_id: str, data: Dict[str, Any]) -> bool:
        return self.cache.set(video_key(video_id), data, self.ttl_seconds)

    def get_cached_video(self, video_id: str) -> Optional[Dict[str, Any]]:
        return self.cache.get(video_key(video_id))

    def cache_subtitle(self, video_id: str, data: Dict[str, Any]) -> bool:
        return self.cache.set(subtitle_key(video_id), data, self.ttl_seconds)

    def get_cached_subtitle(self, video_id: str) -> Optional[Dict[str, Any]]:
        return self.cache.get(subtitle_key(video_id))

    def invalidate_video(self, video_id: str) -> None:
        """Drop the video entry and the subtitle cached for it."""
        self.cache.delete(video_key(video_id))
        self.cache.delete(subtitle_key(video_id))
        logger.debug(f"Invalidated cache for video {video_id}")

    def invalidate_all_videos(self) -> int:
        return self.cache.delete_pattern(prefix_pattern(VIDEO_PREFIX))

    def invalidate_all_subtitles(self) -> int:
        return self.cache.delete_pattern(prefix_pattern(SUBTITLE_PREFIX))
