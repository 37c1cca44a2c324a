"""Bounded-retry transcription acquisition.

``TranscriptionClient`` drives one backend call per attempt through an explicit
state machine::

    ATTEMPTING --non-empty text-----------------------> SUCCEEDED
    ATTEMPTING --4xx other than 429-------------------> FAILED_TERMINAL
    ATTEMPTING --retryable failure, attempts left-----> (backoff) ATTEMPTING
    ATTEMPTING --retryable failure, none left---------> FAILED_EXHAUSTED

Retryable failures are 5xx, 429, network errors, timeouts and responses with
empty text. Task cancellation propagates immediately from an attempt or a
backoff sleep and schedules nothing further.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..exceptions import TranscriptionExhaustedError, TranscriptionTerminalError
from ..providers.base import BaseTranscriptionBackend
from ..utils.retry import RetryConfig, extract_status_code, is_terminal_status

logger = logging.getLogger(__name__)

DEFAULT_RETRY_CONFIG = RetryConfig(
    max_attempts=5,
    base_delay=2.0,
    max_delay=30.0,
    exponential_base=2.0,
    jitter=True,
)


class TranscriptionState(Enum):
    """States of one transcription invocation."""

    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    FAILED_TERMINAL = "failed_terminal"
    FAILED_EXHAUSTED = "failed_exhausted"


@dataclass
class AttemptRecord:
    """Summary of one failed attempt."""

    attempt: int
    error_type: str
    message: str
    status_code: Optional[int] = None
    delay: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attempt": self.attempt,
            "error_type": self.error_type,
            "message": self.message,
            "status_code": self.status_code,
            "delay": self.delay,
        }


@dataclass
class TranscriptionAttempt:
    """Mutable state of a single ``transcribe`` call. Never shared between calls."""

    asset_locator: str
    language: str
    number: int = 0
    state: TranscriptionState = TranscriptionState.ATTEMPTING
    last_error: Optional[BaseException] = None
    last_status_code: Optional[int] = None
    total_backoff: float = 0.0
    history: List[AttemptRecord] = field(default_factory=list)

    def history_dicts(self) -> List[Dict[str, Any]]:
        return [record.to_dict() for record in self.history]


@dataclass
class TranscriptionOutcome:
    """Successful result of ``transcribe_with_outcome``."""

    text: str
    attempts: int
    state: TranscriptionState
    total_backoff: float = 0.0
    elapsed: float = 0.0
    model: Optional[str] = None


class _EmptyTranscription(Exception):
    """Backend answered but returned no usable text."""


class TranscriptionClient:
    """Obtains a transcript from a flaky backend with bounded retries.

    The client holds no per-call state and does not cache results, so one
    instance can serve any number of concurrent calls.
    """

    def __init__(
        self,
        backend: BaseTranscriptionBackend,
        retry_config: Optional[RetryConfig] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        """Initialize the client.

        Args:
            backend: Backend performing the outbound call
            retry_config: Attempt bound and backoff schedule
            sleep: Awaitable used for backoff waits; ``asyncio.sleep`` by default
        """
        self.backend = backend
        self.retry_config = retry_config or DEFAULT_RETRY_CONFIG
        self._sleep = sleep or asyncio.sleep

    async def transcribe(
        self,
        asset_locator: str,
        language_hint: str = "en",
        mime_type: Optional[str] = None,
        content: Optional[bytes] = None,
    ) -> str:
        """Return a non-empty transcript for the asset.

        ``mime_type`` and ``content`` are handed to the backend unchanged on
        every attempt.

        Raises:
            TranscriptionTerminalError: The API rejected the request
            TranscriptionExhaustedError: Every attempt failed with a retryable error
        """
        outcome = await self.transcribe_with_outcome(
            asset_locator, language_hint, mime_type=mime_type, content=content
        )
        return outcome.text

    async def transcribe_with_outcome(
        self,
        asset_locator: str,
        language_hint: str = "en",
        mime_type: Optional[str] = None,
        content: Optional[bytes] = None,
    ) -> TranscriptionOutcome:
        """Same as ``transcribe`` but also reports attempts and backoff spent."""
        attempt = TranscriptionAttempt(asset_locator=asset_locator, language=language_hint)
        max_attempts = self.retry_config.max_attempts
        started = time.monotonic()

        while attempt.state is TranscriptionState.ATTEMPTING:
            attempt.number += 1
            logger.debug(
                f"Transcription attempt {attempt.number}/{max_attempts} for {asset_locator}"
            )

            try:
                response = await self.backend.generate(
                    asset_locator, language_hint, mime_type=mime_type, content=content
                )
                text = (response.text or "").strip()
                if not text:
                    raise _EmptyTranscription("Empty response from transcription API")
            except asyncio.CancelledError:
                logger.info(f"Transcription of {asset_locator} cancelled on attempt {attempt.number}")
                raise
            except Exception as e:
                self._record_failure(attempt, e)
            else:
                attempt.state = TranscriptionState.SUCCEEDED
                elapsed = time.monotonic() - started
                if attempt.number > 1:
                    logger.info(
                        f"Transcription succeeded on attempt {attempt.number}/{max_attempts}"
                    )
                return TranscriptionOutcome(
                    text=text,
                    attempts=attempt.number,
                    state=attempt.state,
                    total_backoff=attempt.total_backoff,
                    elapsed=elapsed,
                    model=response.model,
                )

            if attempt.state is TranscriptionState.ATTEMPTING:
                delay = self.retry_config.calculate_backoff_delay(attempt.number)
                attempt.history[-1].delay = delay
                attempt.total_backoff += delay
                logger.warning(
                    f"Transcription attempt {attempt.number}/{max_attempts} failed "
                    f"({attempt.last_error}); retrying in {delay:.2f}s"
                )
                await self._sleep(delay)

        if attempt.state is TranscriptionState.FAILED_TERMINAL:
            logger.error(
                f"Transcription rejected with HTTP {attempt.last_status_code} "
                f"on attempt {attempt.number}; not retrying: {attempt.last_error}"
            )
            raise TranscriptionTerminalError(
                f"Transcription failed: {attempt.last_error}",
                status_code=attempt.last_status_code,
                attempts=attempt.number,
                history=attempt.history_dicts(),
            ) from attempt.last_error

        logger.error(
            f"Transcription failed after {attempt.number} attempts "
            f"(last error: {attempt.last_error})"
        )
        raise TranscriptionExhaustedError(
            f"Transcription failed after {attempt.number} attempts: {attempt.last_error}",
            attempts=attempt.number,
            last_status_code=attempt.last_status_code,
            history=attempt.history_dicts(),
        ) from attempt.last_error

    def _record_failure(self, attempt: TranscriptionAttempt, error: Exception) -> None:
        """Classify a failed attempt and advance the state machine."""
        status_code = extract_status_code(error)
        attempt.last_error = error
        attempt.last_status_code = status_code
        attempt.history.append(
            AttemptRecord(
                attempt=attempt.number,
                error_type=type(error).__name__,
                message=str(error),
                status_code=status_code,
            )
        )

        if is_terminal_status(status_code):
            attempt.state = TranscriptionState.FAILED_TERMINAL
        elif attempt.number >= self.retry_config.max_attempts:
            attempt.state = TranscriptionState.FAILED_EXHAUSTED
