"""Gemini transcription backend.

Calls the Gemini ``generateContent`` REST endpoint through ``httpx`` with a prompt
asking for a timestamped, speaker-labelled transcript of a stored video. Each
``generate`` call makes one ``generateContent`` request, preceded by a Files API
upload for large media that the API cannot fetch itself. Retries live in
``TranscriptionClient``.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any, Dict, List, Optional

import httpx

from .base import BaseTranscriptionBackend, TranscriptionAPIError, TranscriptionResponse

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"
DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TIMEOUT = 600.0

# generateContent rejects requests above ~20 MB; larger media goes through the Files API
INLINE_DATA_LIMIT = 20 * 1024 * 1024
FETCHABLE_SCHEMES = ("http://", "https://", "gs://")
FILE_POLL_INTERVAL = 2.0


def build_transcription_prompt(language: str = "en") -> str:
    """Instructions sent alongside the video."""
    return "\n".join(
        [
            "Generate a complete and accurate transcription of the provided audio file.",
            "Include timestamps in the format [MM:SS.mmm] every 3-5 seconds "
            "and for all speaker changes.",
            "Timestamps should have accuracy within ±0.1 to ±3 seconds of the actual audio timing.",
            "Format timestamps consistently throughout and preserve all spoken content.",
            "If there are multiple speakers, indicate them as 'Speaker 1', 'Speaker 2', etc.",
            f"The audio is in {language} language.",
            "Include proper punctuation and paragraph breaks for readability.",
        ]
    )


class GeminiTranscriptionBackend(BaseTranscriptionBackend):
    """Gemini ``generateContent`` over REST.

    The video reaches the model one of three ways:

    - ``http(s)://`` and ``gs://`` locators are passed as ``file_data`` for the
      API to fetch
    - other locators (e.g. ``memory://``) send the bytes as base64 ``inline_data``
      when they fit in one request
    - larger bytes are uploaded through the Files API first; the resulting file
      URI is reused for later attempts on the same locator

    The client is created lazily and reused across calls; pass ``client`` to
    inject a preconfigured ``httpx.AsyncClient`` (e.g., one with a mock transport).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = DEFAULT_TIMEOUT,
        mime_type: str = "video/mp4",
        client: Optional[httpx.AsyncClient] = None,
        inline_limit: int = INLINE_DATA_LIMIT,
        poll_interval: float = FILE_POLL_INTERVAL,
    ):
        super().__init__(api_key)
        if not self.api_key:
            raise ValueError(
                "GEMINI_API_KEY not found. Set it in the environment or a .env file."
            )
        self.model = model
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.mime_type = mime_type
        self.inline_limit = inline_limit
        self.poll_interval = poll_interval
        self._client = client
        self._owns_client = client is None
        self._uploaded_files: Dict[str, str] = {}

    @classmethod
    def from_settings(cls, settings) -> "GeminiTranscriptionBackend":
        """Build from ``GeminiSettings`` plus the transcription request timeout."""
        gemini = settings.gemini
        api_key = gemini.api_key.get_secret_value() if gemini.api_key else None
        return cls(
            api_key=api_key,
            model=gemini.model,
            endpoint=gemini.endpoint,
            timeout=settings.transcription.request_timeout,
        )

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
            )
        return self._client

    @property
    def upload_url(self) -> str:
        """Files API upload URL derived from ``endpoint``."""
        url = httpx.URL(self.endpoint)
        return str(url.copy_with(path=f"/upload{url.path}/files"))

    async def _media_part(
        self, asset_locator: str, mime_type: str, content: Optional[bytes]
    ) -> Dict[str, Any]:
        if asset_locator.startswith(FETCHABLE_SCHEMES):
            return {"file_data": {"mime_type": mime_type, "file_uri": asset_locator}}

        if content is None:
            raise TranscriptionAPIError(
                f"Asset {asset_locator} is not reachable by the Gemini API and no content was given",
                status_code=400,
            )

        if len(content) <= self.inline_limit:
            return {
                "inline_data": {
                    "mime_type": mime_type,
                    "data": base64.b64encode(content).decode("ascii"),
                }
            }

        file_uri = self._uploaded_files.get(asset_locator)
        if file_uri is None:
            file_uri = await self._upload_file(asset_locator, mime_type, content)
            self._uploaded_files[asset_locator] = file_uri
        return {"file_data": {"mime_type": mime_type, "file_uri": file_uri}}

    async def _upload_file(self, asset_locator: str, mime_type: str, content: bytes) -> str:
        """Upload through the resumable Files API and wait until the file is ACTIVE.

        Returns:
            URI of the uploaded file
        """
        client = self._get_client()
        logger.info(f"Uploading {asset_locator} ({len(content)} bytes) to the Gemini Files API")

        start = await client.post(
            self.upload_url,
            headers={
                "x-goog-api-key": self.api_key,
                "X-Goog-Upload-Protocol": "resumable",
                "X-Goog-Upload-Command": "start",
                "X-Goog-Upload-Header-Content-Length": str(len(content)),
                "X-Goog-Upload-Header-Content-Type": mime_type,
            },
            json={"file": {"display_name": asset_locator.rsplit("/", 1)[-1]}},
        )
        self._raise_for_status(start, "File upload start")
        session_url = start.headers.get("x-goog-upload-url")
        if not session_url:
            raise TranscriptionAPIError("Gemini Files API returned no upload URL")

        finished = await client.post(
            session_url,
            headers={
                "X-Goog-Upload-Offset": "0",
                "X-Goog-Upload-Command": "upload, finalize",
            },
            content=bytes(content),
        )
        self._raise_for_status(finished, "File upload")
        file_info = self._json(finished).get("file") or {}

        max_polls = max(1, int(self.timeout / self.poll_interval)) if self.poll_interval > 0 else 1
        polls = 0
        while file_info.get("state") == "PROCESSING":
            if polls >= max_polls:
                raise TranscriptionAPIError(
                    f"Uploaded file {file_info.get('name')} still processing after {polls} checks"
                )
            await asyncio.sleep(self.poll_interval)
            polls += 1
            status = await client.get(
                f"{self.endpoint}/{file_info['name']}",
                headers={"x-goog-api-key": self.api_key},
            )
            self._raise_for_status(status, "File status")
            file_info = self._json(status)

        if file_info.get("state") == "FAILED" or not file_info.get("uri"):
            raise TranscriptionAPIError(
                f"Gemini could not process uploaded file {file_info.get('name')}"
            )
        logger.debug(f"Uploaded {asset_locator} as {file_info['uri']}")
        return file_info["uri"]

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        if response.status_code >= 400:
            raise TranscriptionAPIError(
                f"{action} failed: Gemini API returned HTTP {response.status_code}: "
                f"{response.text[:200]}",
                status_code=response.status_code,
            )

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise TranscriptionAPIError(f"Gemini API returned malformed JSON: {e}") from e

    async def generate(
        self,
        asset_locator: str,
        language: str = "en",
        mime_type: Optional[str] = None,
        content: Optional[bytes] = None,
    ) -> TranscriptionResponse:
        mime_type = mime_type or self.mime_type
        media = await self._media_part(asset_locator, mime_type, content)
        payload = {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": build_transcription_prompt(language)}, media],
                }
            ]
        }
        url = f"{self.endpoint}/models/{self.model}:generateContent"
        headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}

        logger.debug(f"Requesting transcription of {asset_locator} ({mime_type}) from {self.model}")
        response = await self._get_client().post(url, headers=headers, json=payload)

        if response.status_code >= 400:
            raise TranscriptionAPIError(
                f"Gemini API returned HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        body = self._json(response)
        return TranscriptionResponse(
            text=self._extract_text(body),
            model=body.get("modelVersion", self.model) if isinstance(body, dict) else self.model,
            metadata=self._extract_metadata(body),
        )

    @staticmethod
    def _extract_text(body: Any) -> Optional[str]:
        """Join the text parts of the first candidate."""
        if not isinstance(body, dict):
            return None
        candidates = body.get("candidates") or []
        if not candidates:
            return None
        parts: List[Dict[str, Any]] = (candidates[0].get("content") or {}).get("parts") or []
        texts = [part["text"] for part in parts if isinstance(part.get("text"), str)]
        return "".join(texts) if texts else None

    @staticmethod
    def _extract_metadata(body: Any) -> Dict[str, Any]:
        if not isinstance(body, dict):
            return {}
        metadata: Dict[str, Any] = {}
        candidates = body.get("candidates") or []
        if candidates and candidates[0].get("finishReason"):
            metadata["finish_reason"] = candidates[0]["finishReason"]
        if body.get("usageMetadata"):
            metadata["usage"] = body["usageMetadata"]
        return metadata

    def validate_configuration(self) -> bool:
        return bool(self.api_key) and bool(self.model)

    def get_provider_name(self) -> str:
        return f"Gemini ({self.model})"

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
