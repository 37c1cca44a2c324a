"""Transcription backends."""

from .base import BaseTranscriptionBackend, TranscriptionAPIError, TranscriptionResponse
from .gemini import GeminiTranscriptionBackend

__all__ = [
    "BaseTranscriptionBackend",
    "GeminiTranscriptionBackend",
    "TranscriptionAPIError",
    "TranscriptionResponse",
]
