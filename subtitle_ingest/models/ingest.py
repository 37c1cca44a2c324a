"""Data models for the upload and subtitle workflow."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class UploadMetadata:
    """Client-declared metadata of an uploaded video."""

    file_name: str
    file_size: int
    mime_type: str
    fingerprint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "file_name": self.file_name,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "fingerprint": self.fingerprint,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UploadMetadata":
        """Create from dictionary."""
        return cls(
            file_name=data["file_name"],
            file_size=data["file_size"],
            mime_type=data["mime_type"],
            fingerprint=data.get("fingerprint"),
        )


@dataclass
class AssetRecord:
    """A video persisted in the durable store."""

    asset_id: str
    file_name: str
    file_size: int
    mime_type: str
    locator: str
    fingerprint: Optional[str] = None
    status: str = "uploaded"
    created_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "asset_id": self.asset_id,
            "file_name": self.file_name,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "locator": self.locator,
            "fingerprint": self.fingerprint,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AssetRecord":
        """Create from dictionary."""
        created_at = data.get("created_at")
        return cls(
            asset_id=data["asset_id"],
            file_name=data["file_name"],
            file_size=data["file_size"],
            mime_type=data["mime_type"],
            locator=data["locator"],
            fingerprint=data.get("fingerprint"),
            status=data.get("status", "uploaded"),
            created_at=datetime.fromisoformat(created_at) if created_at else _utcnow(),
        )


@dataclass
class SubtitleRecord:
    """A generated subtitle document."""

    subtitle_id: str
    video_id: str
    content: str
    language: str = "en"
    format: str = "vtt"
    raw_text: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "subtitle_id": self.subtitle_id,
            "video_id": self.video_id,
            "content": self.content,
            "language": self.language,
            "format": self.format,
            "raw_text": self.raw_text,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubtitleRecord":
        """Create from dictionary."""
        created_at = data.get("created_at")
        return cls(
            subtitle_id=data["subtitle_id"],
            video_id=data["video_id"],
            content=data["content"],
            language=data.get("language", "en"),
            format=data.get("format", "vtt"),
            raw_text=data.get("raw_text"),
            created_at=datetime.fromisoformat(created_at) if created_at else _utcnow(),
        )


@dataclass(frozen=True)
class DeduplicationRecord:
    """Fingerprint -> persisted video (and subtitle, once generated).

    Frozen: attaching a subtitle produces a new record via ``dataclasses.replace``.
    """

    fingerprint: str
    video_id: str
    subtitle_id: Optional[str] = None

    @property
    def has_subtitle(self) -> bool:
        return self.subtitle_id is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "fingerprint": self.fingerprint,
            "video_id": self.video_id,
            "subtitle_id": self.subtitle_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeduplicationRecord":
        """Create from dictionary."""
        return cls(
            fingerprint=data["fingerprint"],
            video_id=data["video_id"],
            subtitle_id=data.get("subtitle_id"),
        )


@dataclass
class UploadResult:
    """Outcome of ``UploadOrchestrator.handle_upload``."""

    video_id: str
    subtitle_id: Optional[str]
    is_duplicate: bool
    fingerprint: Optional[str] = None
    transcription_attempts: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "video_id": self.video_id,
            "subtitle_id": self.subtitle_id,
            "is_duplicate": self.is_duplicate,
            "fingerprint": self.fingerprint,
            "transcription_attempts": self.transcription_attempts,
        }
