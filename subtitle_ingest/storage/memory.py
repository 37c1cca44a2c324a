"""In-process durable store used by the CLI and the test suite."""
from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Dict, Optional

from ..exceptions import AssetNotFoundError
from ..models.ingest import AssetRecord, SubtitleRecord, UploadMetadata
from .base import DurableStore

logger = logging.getLogger(__name__)


class InMemoryDurableStore(DurableStore):
    """Dictionary-backed :class:`DurableStore`.

    Keeps the asset bytes alongside their records and counts every write so
    callers can verify that a duplicate upload caused none.

    Attributes:
        asset_writes: Number of ``create_asset`` calls that stored an asset
        subtitle_writes: Number of ``create_subtitle_record`` calls
    """

    def __init__(self) -> None:
        self._assets: Dict[str, AssetRecord] = {}
        self._content: Dict[str, bytes] = {}
        self._subtitles: Dict[str, SubtitleRecord] = {}
        self._lock = asyncio.Lock()
        self.asset_writes = 0
        self.subtitle_writes = 0

    async def create_asset(self, metadata: UploadMetadata, content: bytes) -> str:
        asset_id = uuid.uuid4().hex
        record = AssetRecord(
            asset_id=asset_id,
            file_name=metadata.file_name,
            file_size=metadata.file_size,
            mime_type=metadata.mime_type,
            locator=f"memory://assets/{asset_id}",
            fingerprint=metadata.fingerprint,
        )
        async with self._lock:
            self._assets[asset_id] = record
            self._content[asset_id] = bytes(content)
            self.asset_writes += 1
        logger.debug(f"Stored asset {asset_id} ({metadata.file_size} bytes)")
        return asset_id

    async def get_asset(self, asset_id: str) -> AssetRecord:
        async with self._lock:
            record = self._assets.get(asset_id)
        if record is None:
            raise AssetNotFoundError(asset_id)
        return record

    async def delete_asset(self, asset_id: str) -> None:
        async with self._lock:
            self._assets.pop(asset_id, None)
            self._content.pop(asset_id, None)
            stale = [sid for sid, sub in self._subtitles.items() if sub.video_id == asset_id]
            for subtitle_id in stale:
                del self._subtitles[subtitle_id]
        logger.debug(f"Deleted asset {asset_id}")

    async def create_subtitle_record(self, video_id: str, data: Dict[str, Any]) -> str:
        subtitle_id = uuid.uuid4().hex
        record = SubtitleRecord(
            subtitle_id=subtitle_id,
            video_id=video_id,
            content=data.get("content", ""),
            language=data.get("language", "en"),
            format=data.get("format", "vtt"),
            raw_text=data.get("raw_text"),
        )
        async with self._lock:
            self._subtitles[subtitle_id] = record
            self.subtitle_writes += 1
        logger.debug(f"Stored subtitle {subtitle_id} for video {video_id}")
        return subtitle_id

    async def get_subtitle(self, subtitle_id: str) -> Optional[SubtitleRecord]:
        async with self._lock:
            return self._subtitles.get(subtitle_id)

    async def read_asset_bytes(self, asset_id: str) -> bytes:
        async with self._lock:
            if asset_id not in self._content:
                raise AssetNotFoundError(asset_id)
            return self._content[asset_id]

    @property
    def total_writes(self) -> int:
        return self.asset_writes + self.subtitle_writes
