"""Victim selection helpers for the entry cache.

Pure functions operating on the cache's ``OrderedDict`` of entries. The cache keeps
its map in access order (``move_to_end`` on every hit), so the least recently used
key is always the first one.

Callers must hold the cache lock while calling these helpers.
"""
from __future__ import annotations

from collections import OrderedDict
from typing import Any, List, Optional


def select_expired_keys(entries: "OrderedDict[str, Any]", now: float) -> List[str]:
    """Collect the keys of every expired entry.

    Args:
        entries: Cache map of key -> entry with an ``is_expired(now)`` method
        now: Current clock reading

    Returns:
        Keys whose entries have expired, in map order.
    """
    return [key for key, entry in entries.items() if entry.is_expired(now)]


def select_lru_victim(entries: "OrderedDict[str, Any]") -> Optional[str]:
    """Select the least recently used key.

    O(1) because the map is maintained in LRU order.

    Args:
        entries: Cache map in access order

    Returns:
        The first key, or None when the map is empty.
    """
    if not entries:
        return None
    return next(iter(entries))


def select_victim(entries: "OrderedDict[str, Any]", now: float) -> Optional[str]:
    """Pick the entry to drop when a full cache needs room.

    An expired entry is preferred, since dropping it loses nothing; otherwise
    the least recently used entry is chosen.

    Args:
        entries: Cache map in access order
        now: Current clock reading

    Returns:
        Victim key, or None when the map is empty.
    """
    for key, entry in entries.items():
        if entry.is_expired(now):
            return key
    return select_lru_victim(entries)
