"""Transcription client and upload orchestration."""

from .orchestrator import UploadOrchestrator, build_orchestrator
from .transcription import (
    TranscriptionClient,
    TranscriptionOutcome,
    TranscriptionState,
)

__all__ = [
    "TranscriptionClient",
    "TranscriptionOutcome",
    "TranscriptionState",
    "UploadOrchestrator",
    "build_orchestrator",
]
