"""Abstract base class for transcription backends."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class TranscriptionResponse:
    """Raw response of one backend call.

    Attributes:
        text: Transcript text; may be empty, which callers treat as a failure
        model: Model that produced the text, when reported
        metadata: Backend-specific extras (finish reason, token usage)
    """

    text: Optional[str]
    model: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class TranscriptionAPIError(Exception):
    """HTTP-level failure reported by a transcription backend.

    Attributes:
        status_code: Upstream HTTP status, or None when the response was unusable
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class BaseTranscriptionBackend(ABC):
    """One outbound call to a speech-to-text API.

    Backends do not retry: retry policy, backoff and error classification
    belong to ``TranscriptionClient``. Backends report failures by raising
    :class:`TranscriptionAPIError` for HTTP errors, or letting network and
    timeout errors propagate.
    """

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key

    @abstractmethod
    async def generate(
        self,
        asset_locator: str,
        language: str = "en",
        mime_type: Optional[str] = None,
        content: Optional[bytes] = None,
    ) -> TranscriptionResponse:
        """Request a timestamped transcript of a stored asset.

        Args:
            asset_locator: Locator of the stored asset
            language: Language hint for the transcript (e.g., 'en', 'es')
            mime_type: Declared content type of the asset
            content: Asset bytes, for backends that cannot fetch ``asset_locator``

        Returns:
            TranscriptionResponse with whatever text the API returned
        """
        pass

    @abstractmethod
    def validate_configuration(self) -> bool:
        """Validate that the backend is properly configured.

        Returns:
            True if configuration is valid, False otherwise
        """
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Human-readable name of the backend (e.g., 'Gemini 2.0 Flash')."""
        pass

    def get_supported_features(self) -> List[str]:
        return ["timestamps"]

    async def aclose(self) -> None:
        """Release network resources held by the backend."""
        return None
