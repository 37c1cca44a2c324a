"""Durable store interface.

The durable store is the source of truth for videos and subtitles. The ingest
workflow only needs four calls from it; object storage, databases and their
permission models stay behind this interface.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict

from ..models.ingest import AssetRecord, UploadMetadata


class DurableStore(ABC):
    """Async persistence for video assets and subtitle records.

    Implementations raise :class:`~subtitle_ingest.exceptions.AssetNotFoundError`
    from ``get_asset`` for unknown ids; any other exception is treated by the
    orchestrator as a storage failure.
    """

    @abstractmethod
    async def create_asset(self, metadata: UploadMetadata, content: bytes) -> str:
        """Persist a video and return its new id."""
        pass

    @abstractmethod
    async def get_asset(self, asset_id: str) -> AssetRecord:
        """Fetch a persisted video.

        Raises:
            AssetNotFoundError: If no asset has this id
        """
        pass

    @abstractmethod
    async def delete_asset(self, asset_id: str) -> None:
        """Delete a video. Deleting an unknown id is a no-op."""
        pass

    @abstractmethod
    async def create_subtitle_record(self, video_id: str, data: Dict[str, Any]) -> str:
        """Persist a subtitle document for a video and return its id."""
        pass

    async def aclose(self) -> None:
        """Release any held resources."""
        return None
