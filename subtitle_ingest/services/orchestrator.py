"""Upload orchestration: ingest new content or reuse what is already known.

``handle_upload`` composes validation, fingerprinting, the deduplication index,
the durable store and the transcription client:

1. Validate the declared metadata (nothing is hashed or written on failure).
2. Fingerprint the bytes.
3. Look the fingerprint up. A hit is re-validated against the durable store;
   a record pointing at a deleted video is forgotten and treated as a miss.
   - hit with subtitle: return the existing ids, no writes, no transcription
   - hit without subtitle: reuse the video, transcribe it
   - miss: persist the video, record the fingerprint, transcribe
4. On transcription success persist the subtitle, attach it to the record and
   cache it under ``subtitle:{video_id}``.

When transcription fails for good the video stays persisted and recorded
without a subtitle, so the next identical upload skips storage and retries
only the transcription.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from ..cache.entities import EntityCache
from ..cache.entry_cache import EntryCache
from ..config.settings import IngestSettings, UploadSettings, get_settings
from ..dedup.fingerprint import ContentFingerprinter, Fingerprint
from ..dedup.index import DeduplicationIndex
from ..exceptions import AssetNotFoundError, StorageFailureError, TranscriptionError
from ..formatters.vtt import format_vtt
from ..models.ingest import AssetRecord, DeduplicationRecord, UploadMetadata, UploadResult
from ..providers.base import BaseTranscriptionBackend
from ..providers.gemini import GeminiTranscriptionBackend
from ..storage.base import DurableStore
from ..storage.memory import InMemoryDurableStore
from ..utils.validation import validate_upload
from .transcription import TranscriptionClient

logger = logging.getLogger(__name__)


class UploadOrchestrator:
    """Entry point of the ingest workflow.

    All collaborators are injected; ``build_orchestrator`` wires the defaults.
    One instance serves concurrent uploads. Two simultaneous uploads of the
    same new content may both persist a video; the later dedup record wins.
    """

    def __init__(
        self,
        store: DurableStore,
        transcription_client: TranscriptionClient,
        cache: EntryCache,
        dedup_index: Optional[DeduplicationIndex] = None,
        fingerprinter: Optional[ContentFingerprinter] = None,
        upload_settings: Optional[UploadSettings] = None,
    ):
        self.store = store
        self.transcription_client = transcription_client
        self.cache = cache
        self.entities = EntityCache(cache)
        self.dedup_index = dedup_index or DeduplicationIndex(cache)
        self.fingerprinter = fingerprinter or ContentFingerprinter()
        self.upload_settings = upload_settings or UploadSettings()

    async def handle_upload(
        self,
        data: bytes,
        file_name: str,
        file_size: int,
        mime_type: str,
        language: str = "en",
    ) -> UploadResult:
        """Ingest an uploaded video, reusing prior work for known content.

        Args:
            data: Video bytes
            file_name: Client-supplied file name
            file_size: Client-declared size in bytes
            mime_type: Client-declared content type (must be ``video/*``)
            language: Language hint for transcription

        Returns:
            UploadResult with the video id, the subtitle id and whether the
            content was already known

        Raises:
            InvalidInputError: Metadata failed validation
            StorageFailureError: The durable store failed
            TranscriptionError: Transcription failed; ``video_id`` is set on the error
        """
        validate_upload(
            data,
            file_name,
            file_size,
            mime_type,
            max_file_size=self.upload_settings.max_file_size,
            mime_prefix=self.upload_settings.allowed_mime_prefix,
        )

        fp = self.fingerprinter.fingerprint(data)
        record, asset = await self._lookup_valid_record(fp)

        if record is not None and record.has_subtitle:
            logger.info(
                f"Duplicate upload of {file_name!r}: reusing video {record.video_id} "
                f"and subtitle {record.subtitle_id}"
            )
            return UploadResult(
                video_id=record.video_id,
                subtitle_id=record.subtitle_id,
                is_duplicate=True,
                fingerprint=fp,
            )

        if record is not None:
            logger.info(
                f"Duplicate upload of {file_name!r}: video {record.video_id} has no "
                f"subtitle yet, transcribing"
            )
            is_duplicate = True
        else:
            asset = await self._persist(data, file_name, file_size, mime_type, fp)
            self.dedup_index.record(fp, asset.asset_id)
            is_duplicate = False

        subtitle_id, attempts = await self._transcribe_and_store(asset, fp, language, data)
        return UploadResult(
            video_id=asset.asset_id,
            subtitle_id=subtitle_id,
            is_duplicate=is_duplicate,
            fingerprint=fp,
            transcription_attempts=attempts,
        )

    async def _lookup_valid_record(
        self, fp: Fingerprint
    ) -> Tuple[Optional[DeduplicationRecord], Optional[AssetRecord]]:
        """Dedup hit re-validated against the durable store, or (None, None)."""
        record = self.dedup_index.lookup(fp)
        if record is None:
            logger.debug(f"No dedup record for {fp[:12]}...")
            return None, None

        try:
            asset = await self.store.get_asset(record.video_id)
        except AssetNotFoundError:
            logger.warning(
                f"Dedup record for {fp[:12]}... points at missing video {record.video_id}; "
                f"discarding it"
            )
            self.dedup_index.forget(fp)
            return None, None
        except Exception as e:
            raise StorageFailureError(f"Failed to verify video {record.video_id}: {e}") from e
        self.entities.cache_video(asset.asset_id, asset.to_dict())
        return record, asset

    async def _persist(
        self, data: bytes, file_name: str, file_size: int, mime_type: str, fp: Fingerprint
    ) -> AssetRecord:
        metadata = UploadMetadata(
            file_name=file_name, file_size=file_size, mime_type=mime_type, fingerprint=fp
        )
        try:
            video_id = await self.store.create_asset(metadata, data)
            asset = await self.store.get_asset(video_id)
        except Exception as e:
            logger.error(f"Failed to store video {file_name!r}: {e}")
            raise StorageFailureError(f"Failed to upload video: {e}") from e

        self.entities.cache_video(video_id, asset.to_dict())
        logger.info(f"Stored video {video_id} ({file_size} bytes, {fp[:12]}...)")
        return asset

    async def _transcribe_and_store(
        self, asset: AssetRecord, fp: Fingerprint, language: str, data: bytes
    ) -> Tuple[str, int]:
        # data has the asset's fingerprint, so it is the stored content
        try:
            outcome = await self.transcription_client.transcribe_with_outcome(
                asset.locator, language, mime_type=asset.mime_type, content=data
            )
        except TranscriptionError as e:
            e.video_id = asset.asset_id
            logger.error(
                f"Video {asset.asset_id} stored without subtitle: transcription "
                f"{'rejected' if e.terminal else 'exhausted'} after {e.attempts} attempts"
            )
            raise

        vtt = format_vtt(outcome.text, title=outcome.model, generated_at=datetime.now(timezone.utc))
        subtitle_data: Dict[str, Any] = {
            "content": vtt,
            "format": "vtt",
            "language": language,
            "raw_text": outcome.text,
        }
        try:
            subtitle_id = await self.store.create_subtitle_record(asset.asset_id, subtitle_data)
        except Exception as e:
            logger.error(f"Failed to store subtitle for video {asset.asset_id}: {e}")
            raise StorageFailureError(f"Failed to store subtitle: {e}") from e

        self.dedup_index.attach_subtitle(fp, subtitle_id, video_id=asset.asset_id)
        self.entities.cache_subtitle(
            asset.asset_id, {"subtitle_id": subtitle_id, "video_id": asset.asset_id, **subtitle_data}
        )
        logger.info(
            f"Generated subtitle {subtitle_id} for video {asset.asset_id} "
            f"in {outcome.attempts} attempt(s)"
        )
        return subtitle_id, outcome.attempts

    def get_stats(self) -> Dict[str, Any]:
        """Cache counters plus fingerprint record counts."""
        return {
            "cache": self.cache.get_stats().to_dict(),
            "file_hashes": self.dedup_index.stats(),
        }

    def cleanup_expired(self) -> int:
        """Sweep expired cache entries now."""
        return self.cache.cleanup_expired()

    async def invalidate_video(self, video_id: str) -> None:
        """Delete a video and forget everything cached about it.

        Raises:
            StorageFailureError: If the durable store failed to delete it
        """
        record = self.dedup_index.find_by_video(video_id)
        try:
            await self.store.delete_asset(video_id)
        except Exception as e:
            raise StorageFailureError(f"Failed to delete video {video_id}: {e}") from e
        self.entities.invalidate_video(video_id)
        if record is not None:
            self.dedup_index.forget(record.fingerprint)
        logger.info(f"Invalidated video {video_id}")

    async def aclose(self) -> None:
        """Stop background cleanup and close network resources."""
        self.cache.stop_cleanup_timer()
        await self.transcription_client.backend.aclose()
        await self.store.aclose()


def build_orchestrator(
    settings: Optional[IngestSettings] = None,
    store: Optional[DurableStore] = None,
    backend: Optional[BaseTranscriptionBackend] = None,
) -> UploadOrchestrator:
    """Wire an orchestrator with one owned cache instance.

    Args:
        settings: Loaded settings; ``get_settings()`` when None
        store: Durable store; an in-memory store when None
        backend: Transcription backend; Gemini from settings when None

    Returns:
        Ready-to-use orchestrator. Call ``aclose`` when done.
    """
    settings = settings or get_settings()
    if backend is None:
        settings.validate(require_api_key=True)
        backend = GeminiTranscriptionBackend.from_settings(settings)

    cache = EntryCache.from_settings(settings.cache)
    return UploadOrchestrator(
        store=store or InMemoryDurableStore(),
        transcription_client=TranscriptionClient(
            backend, retry_config=settings.transcription.to_retry_config()
        ),
        cache=cache,
        dedup_index=DeduplicationIndex(cache, ttl_seconds=settings.cache.filehash_ttl),
        upload_settings=settings.upload,
    )
