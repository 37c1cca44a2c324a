"""Data models for the ingest workflow."""

from .ingest import (
    AssetRecord,
    DeduplicationRecord,
    SubtitleRecord,
    UploadMetadata,
    UploadResult,
)

__all__ = [
    "AssetRecord",
    "DeduplicationRecord",
    "SubtitleRecord",
    "UploadMetadata",
    "UploadResult",
]
