"""Test doubles shared across the suite."""
from __future__ import annotations

from typing import Any, List, Optional, Sequence, Tuple, Union

from subtitle_ingest.providers.base import (
    BaseTranscriptionBackend,
    TranscriptionAPIError,
    TranscriptionResponse,
)

SAMPLE_TRANSCRIPT = (
    "[00:00.000] Speaker 1: Welcome to the show.\n"
    "[00:04.500] Speaker 2: Thanks for having me.\n"
)

ScriptStep = Union[str, None, BaseException, TranscriptionResponse]


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedBackend(BaseTranscriptionBackend):
    """Backend replaying a fixed sequence of outcomes.

    Each step is a transcript string (``None`` or ``""`` for an empty response),
    an exception to raise, or a full ``TranscriptionResponse``. Once the script
    runs out, ``default`` is returned.
    """

    def __init__(self, script: Sequence[ScriptStep] = (), default: Optional[str] = SAMPLE_TRANSCRIPT):
        super().__init__(api_key="test-key-123456")
        self.script: List[ScriptStep] = list(script)
        self.default = default
        self.calls: List[Tuple[str, str]] = []
        self.media: List[Tuple[Optional[str], Optional[bytes]]] = []
        self.closed = False

    async def generate(
        self,
        asset_locator: str,
        language: str = "en",
        mime_type: Optional[str] = None,
        content: Optional[bytes] = None,
    ) -> TranscriptionResponse:
        self.calls.append((asset_locator, language))
        self.media.append((mime_type, content))
        step: Any = self.script.pop(0) if self.script else self.default
        if isinstance(step, BaseException):
            raise step
        if isinstance(step, TranscriptionResponse):
            return step
        return TranscriptionResponse(text=step, model="fake-model")

    def validate_configuration(self) -> bool:
        return True

    def get_provider_name(self) -> str:
        return "Scripted"

    async def aclose(self) -> None:
        self.closed = True


def api_error(status_code: int) -> TranscriptionAPIError:
    return TranscriptionAPIError(f"HTTP {status_code}", status_code=status_code)
