"""Settings for the ingest workflow.

Each concern reads its own environment prefix, and a ``.env`` file in the
working directory is honoured:

    CACHE_DEFAULT_TTL=3600            CACHE_MAX_ITEMS=1000
    CACHE_ENABLE_CLEANUP=true         CACHE_CLEANUP_INTERVAL=300
    CACHE_FILEHASH_TTL=2592000
    TRANSCRIPTION_MAX_ATTEMPTS=5      TRANSCRIPTION_BASE_DELAY=2.0
    TRANSCRIPTION_MAX_DELAY=30.0      TRANSCRIPTION_REQUEST_TIMEOUT=600
    GEMINI_API_KEY=...                GEMINI_MODEL=gemini-2.0-flash
    UPLOAD_MAX_FILE_SIZE=4294967296   UPLOAD_ALLOWED_MIME_PREFIX=video/

API keys are wrapped in ``SecretStr`` so they never show up in logs or reprs.
"""
from __future__ import annotations

import threading
from typing import Optional

from pydantic import Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..utils.retry import RetryConfig


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""
    pass


class CacheSettings(BaseSettings):
    """Entry cache and deduplication index settings."""

    model_config = SettingsConfigDict(
        env_prefix="CACHE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    default_ttl: int = Field(3600, gt=0)
    max_items: int = Field(1000, ge=1)
    enable_cleanup: bool = True
    cleanup_interval: float = Field(300.0, gt=0)
    filehash_ttl: int = Field(30 * 24 * 60 * 60, gt=0)


class TranscriptionSettings(BaseSettings):
    """Retry policy of the transcription client."""

    model_config = SettingsConfigDict(
        env_prefix="TRANSCRIPTION_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    max_attempts: int = Field(5, ge=1, le=10)
    base_delay: float = Field(2.0, ge=0)
    max_delay: float = Field(30.0, gt=0, le=300)
    exponential_base: float = Field(2.0, ge=1)
    jitter: bool = True
    request_timeout: float = Field(600.0, gt=0)
    default_language: str = "en"

    @model_validator(mode="after")
    def check_delays(self) -> "TranscriptionSettings":
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        return self

    def to_retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            exponential_base=self.exponential_base,
            jitter=self.jitter,
        )


class GeminiSettings(BaseSettings):
    """Gemini API credentials and model selection."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_key: Optional[SecretStr] = None
    model: str = "gemini-2.0-flash"
    endpoint: str = "https://generativelanguage.googleapis.com/v1beta"

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[SecretStr]) -> Optional[SecretStr]:
        """Validate API key format if provided."""
        if v is not None and len(v.get_secret_value()) < 10:
            raise ValueError(
                "API key appears invalid (too short). "
                "Check your .env file or environment variables."
            )
        return v


class UploadSettings(BaseSettings):
    """Upload acceptance limits."""

    model_config = SettingsConfigDict(
        env_prefix="UPLOAD_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    max_file_size: int = Field(4 * 1024 * 1024 * 1024, gt=0)
    allowed_mime_prefix: str = "video/"


class IngestSettings:
    """All settings of the ingest workflow, loaded together.

    Usage:
        settings = get_settings()
        cache = EntryCache.from_settings(settings.cache)
    """

    def __init__(
        self,
        cache: Optional[CacheSettings] = None,
        transcription: Optional[TranscriptionSettings] = None,
        gemini: Optional[GeminiSettings] = None,
        upload: Optional[UploadSettings] = None,
    ):
        try:
            self.cache = cache or CacheSettings()
            self.transcription = transcription or TranscriptionSettings()
            self.gemini = gemini or GeminiSettings()
            self.upload = upload or UploadSettings()
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def validate(self, require_api_key: bool = True) -> None:
        """Check cross-cutting requirements.

        Raises:
            ConfigurationError: If a required value is missing
        """
        if require_api_key and self.gemini.api_key is None:
            raise ConfigurationError(
                "GEMINI_API_KEY is not set. Add it to the environment or a .env file."
            )


_settings: Optional[IngestSettings] = None
_settings_lock = threading.Lock()


def get_settings() -> IngestSettings:
    """Process-wide settings, loaded on first use."""
    global _settings
    if _settings is None:
        with _settings_lock:
            if _settings is None:
                _settings = IngestSettings()
    return _settings


def reset_settings() -> None:
    """Drop the loaded settings so the next ``get_settings`` re-reads the environment."""
    global _settings
    with _settings_lock:
        _settings = None
