"""Error kinds raised by the ingest workflow.

Every error surfaced to callers derives from :class:`IngestError`, which carries an
HTTP-style ``status_code`` so the route layer can map failures to responses without
inspecting exception types.

Propagation policy:
    - InvalidInputError: raised before any hashing, nothing is written
    - StorageFailureError: durable-store call failed, upload fails, no dedup record
    - TranscriptionTerminalError / TranscriptionExhaustedError: the video stays
      persisted but is left without a subtitle
    - CacheFailure: internal to the cache, logged and never propagated
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional


class IngestError(Exception):
    """Base error for the ingest workflow.

    Attributes:
        message: Human-readable error description
        status_code: HTTP-style status code for the route layer
    """

    def __init__(self, message: str, status_code: Optional[int] = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to an error response body."""
        return {
            "status": "error",
            "error": type(self).__name__,
            "message": self.message,
            "status_code": self.status_code,
        }


class InvalidInputError(IngestError):
    """Upload metadata failed validation (bad mime type, size or name)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class StorageFailureError(IngestError):
    """A durable-store call failed."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message, status_code)


class AssetNotFoundError(IngestError):
    """The durable store has no asset with the requested id."""

    def __init__(self, asset_id: str) -> None:
        self.asset_id = asset_id
        super().__init__(f"Video not found: {asset_id}", 404)


class TranscriptionError(IngestError):
    """Transcription could not be obtained.

    Attributes:
        terminal: True when the upstream API rejected the request (4xx other than 429)
        attempts: Number of outbound calls made before giving up
        history: Per-attempt failure summaries, oldest first
        video_id: Id of the persisted video left without a subtitle, when known
    """

    def __init__(
        self,
        message: str,
        terminal: bool,
        status_code: Optional[int] = None,
        attempts: int = 0,
        history: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        self.terminal = terminal
        self.attempts = attempts
        self.history = list(history or [])
        self.video_id: Optional[str] = None
        super().__init__(message, status_code)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "terminal": self.terminal,
                "attempts": self.attempts,
                "video_id": self.video_id,
            }
        )
        return data


class TranscriptionTerminalError(TranscriptionError):
    """The transcription API returned a non-retryable client error."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int],
        attempts: int = 1,
        history: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        super().__init__(message, True, status_code, attempts, history)


class TranscriptionExhaustedError(TranscriptionError):
    """Every retry attempt failed with a retryable error.

    Surfaced with status 503 so callers treat it as retryable at the application
    level; ``last_status_code`` keeps the upstream status of the final attempt.
    """

    def __init__(
        self,
        message: str,
        attempts: int,
        last_status_code: Optional[int] = None,
        history: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        self.last_status_code = last_status_code
        super().__init__(message, False, 503, attempts, history)


class CacheFailure(Exception):
    """Internal cache error. Never raised out of the cache's public methods."""
