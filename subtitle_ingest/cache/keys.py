"""Cache key naming contract.

Per-entity caches use ``video:{videoId}`` and ``subtitle:{videoId}``; fingerprint
dedup records live in their own ``filehash:{fingerprint}`` namespace so that
bulk invalidation of entity caches never touches dedup knowledge.
"""
from __future__ import annotations

from typing import Tuple

VIDEO_PREFIX = "video"
SUBTITLE_PREFIX = "subtitle"
FILEHASH_PREFIX = "filehash"

SEPARATOR = ":"


def video_key(video_id: str) -> str:
    """Cache key for a video's metadata."""
    return f"{VIDEO_PREFIX}{SEPARATOR}{video_id}"


def subtitle_key(video_id: str) -> str:
    """Cache key for the subtitle generated for a video."""
    return f"{SUBTITLE_PREFIX}{SEPARATOR}{video_id}"


def filehash_key(fingerprint: str) -> str:
    """Cache key for the dedup record of a content fingerprint."""
    return f"{FILEHASH_PREFIX}{SEPARATOR}{fingerprint}"


def prefix_pattern(prefix: str) -> str:
    """Glob pattern matching every key in a namespace, e.g. ``video:*``."""
    return f"{prefix}{SEPARATOR}*"


def split_key(key: str) -> Tuple[str, str]:
    """Split a key into ``(namespace, identifier)``.

    Keys without a separator are returned with an empty namespace.
    """
    prefix, sep, rest = key.partition(SEPARATOR)
    if not sep:
        return "", key
    return prefix, rest
