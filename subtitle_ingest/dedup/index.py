"""Fingerprint -> video/subtitle deduplication index.

Records live in the shared :class:`EntryCache` under ``filehash:{fingerprint}``
with a long TTL. The index is a performance hint, not a source of truth: losing
it only causes redundant reprocessing, and the orchestrator re-validates a hit
against the durable store before trusting it.

Writes are last-write-wins. Two concurrent uploads of the same new content may
both persist a video; the later ``record`` call overwrites the earlier one.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Dict, Optional

from ..cache.entry_cache import EntryCache
from ..cache.keys import FILEHASH_PREFIX, filehash_key, prefix_pattern
from ..models.ingest import DeduplicationRecord
from .fingerprint import Fingerprint, is_fingerprint

logger = logging.getLogger(__name__)

DEFAULT_RECORD_TTL = 30 * 24 * 60 * 60


class DeduplicationIndex:
    """Maps content fingerprints to the video (and subtitle) created for them."""

    def __init__(self, cache: EntryCache, ttl_seconds: float = DEFAULT_RECORD_TTL):
        """Initialize the index.

        Args:
            cache: Shared entry cache holding the records
            ttl_seconds: Lifetime of a record; refreshed on every write
        """
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    def lookup(self, fingerprint: Fingerprint) -> Optional[DeduplicationRecord]:
        """Find the record for a fingerprint.

        Returns:
            The record, or None on miss. A stored value that cannot be decoded
            is dropped and reported as a miss.
        """
        key = filehash_key(fingerprint)
        data = self.cache.get(key)
        if data is None:
            return None
        try:
            return DeduplicationRecord.from_dict(data)
        except (KeyError, TypeError) as e:
            logger.error(f"Discarding corrupt dedup record {key}: {e}")
            self.cache.delete(key)
            return None

    def record(self, fingerprint: Fingerprint, video_id: str) -> DeduplicationRecord:
        """Remember that a fingerprint was persisted as ``video_id``.

        Raises:
            ValueError: If ``fingerprint`` is not a SHA-256 hex digest
        """
        if not is_fingerprint(fingerprint):
            raise ValueError(f"Not a content fingerprint: {fingerprint!r}")
        record = DeduplicationRecord(fingerprint=fingerprint, video_id=video_id)
        self._write(record)
        logger.info(f"Stored file hash mapping: {fingerprint[:12]}... -> video {video_id}")
        return record

    def attach_subtitle(
        self, fingerprint: Fingerprint, subtitle_id: str, video_id: Optional[str] = None
    ) -> Optional[DeduplicationRecord]:
        """Associate a subtitle with an existing record.

        Args:
            fingerprint: Content fingerprint
            subtitle_id: Id of the persisted subtitle
            video_id: If given, only attach when the record still points at this video

        Returns:
            The new record, or None when there is no matching record
        """
        current = self.lookup(fingerprint)
        if current is None:
            logger.warning(
                f"No dedup record for {fingerprint[:12]}...; subtitle {subtitle_id} not attached"
            )
            return None
        if video_id is not None and current.video_id != video_id:
            logger.info(
                f"Dedup record for {fingerprint[:12]}... now points at video {current.video_id}; "
                f"subtitle {subtitle_id} of video {video_id} not attached"
            )
            return None
        updated = dataclasses.replace(current, subtitle_id=subtitle_id)
        self._write(updated)
        logger.info(
            f"Attached subtitle {subtitle_id} to video {updated.video_id} "
            f"({fingerprint[:12]}...)"
        )
        return updated

    def forget(self, fingerprint: Fingerprint) -> bool:
        """Drop the record for a fingerprint."""
        return self.cache.delete(filehash_key(fingerprint))

    def find_by_video(self, video_id: str) -> Optional[DeduplicationRecord]:
        """Reverse lookup: the record pointing at ``video_id``, if any.

        Linear scan of the ``filehash:`` namespace; reads do not count as cache hits.
        """
        for key in self.cache.keys(prefix_pattern(FILEHASH_PREFIX)):
            data = self.cache.peek(key)
            if isinstance(data, dict) and data.get("video_id") == video_id:
                try:
                    return DeduplicationRecord.from_dict(data)
                except (KeyError, TypeError):
                    continue
        return None

    def stats(self) -> Dict[str, int]:
        """Count records, split by whether a subtitle is attached."""
        total = 0
        with_subtitles = 0
        for key in self.cache.keys(prefix_pattern(FILEHASH_PREFIX)):
            data = self.cache.peek(key)
            if not isinstance(data, dict):
                continue
            total += 1
            if data.get("subtitle_id"):
                with_subtitles += 1
        return {
            "total": total,
            "with_subtitles": with_subtitles,
            "without_subtitles": total - with_subtitles,
        }

    def _write(self, record: DeduplicationRecord) -> None:
        self.cache.set(filehash_key(record.fingerprint), record.to_dict(), self.ttl_seconds)
