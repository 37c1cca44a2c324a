"""Configuration for the ingest workflow."""

from .settings import (
    CacheSettings,
    ConfigurationError,
    GeminiSettings,
    IngestSettings,
    TranscriptionSettings,
    UploadSettings,
    get_settings,
    reset_settings,
)

__all__ = [
    "CacheSettings",
    "ConfigurationError",
    "GeminiSettings",
    "IngestSettings",
    "TranscriptionSettings",
    "UploadSettings",
    "get_settings",
    "reset_settings",
]
