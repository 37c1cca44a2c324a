"""Backoff math and error classification for retried API calls."""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Maximum number of attempts (including the initial attempt)
        base_delay: Delay in seconds after the first failed attempt
        max_delay: Ceiling in seconds for any single delay
        exponential_base: Base for exponential backoff calculation
        jitter: Whether to add random jitter to delays
    """

    max_attempts: int = 5
    base_delay: float = 2.0
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if self.exponential_base < 1:
            raise ValueError("exponential_base must be >= 1")

        if self.max_attempts > 10:
            raise ValueError("max_attempts should not exceed 10 for practical purposes")
        if self.max_delay > 300:  # 5 minutes
            raise ValueError("max_delay should not exceed 300 seconds for practical purposes")

    def calculate_backoff_delay(self, attempt: int) -> float:
        """Delay to wait after failed attempt number ``attempt`` (1-based).

        Args:
            attempt: Number of the attempt that just failed

        Returns:
            Calculated delay in seconds
        """
        return calculate_delay(
            attempt, self.base_delay, self.max_delay, self.exponential_base, self.jitter
        )


def calculate_delay(
    attempt: int, base_delay: float, max_delay: float, exponential_base: float, jitter: bool = True
) -> float:
    """Calculate delay for a given attempt with exponential backoff and jitter.

    Attempt 1 waits ``base_delay``, attempt 2 twice that with the default base,
    and so on up to ``max_delay``.

    Args:
        attempt: Attempt number; 0 means no delay
        base_delay: Base delay in seconds
        max_delay: Maximum delay in seconds
        exponential_base: Base for exponential calculation
        jitter: Whether to add random jitter

    Returns:
        Calculated delay in seconds, always between 0 and max_delay
    """
    if attempt <= 0:
        return 0.0

    base_backoff = min(base_delay * (exponential_base ** (attempt - 1)), max_delay)

    if jitter:
        # ±25% random jitter
        jitter_range = base_backoff * 0.25
        base_backoff += random.uniform(-jitter_range, jitter_range)

    return max(0.0, min(base_backoff, max_delay))


def extract_status_code(exception: BaseException) -> Optional[int]:
    """Pull an HTTP status code off an exception, if it carries one.

    Looks at ``status_code``, then ``response.status_code`` (httpx / requests
    errors), then ``status``.
    """
    code = getattr(exception, "status_code", None)
    if code is None:
        response = getattr(exception, "response", None)
        code = getattr(response, "status_code", None)
    if code is None:
        code = getattr(exception, "status", None)
    try:
        return int(code) if code is not None else None
    except (TypeError, ValueError):
        return None


def is_terminal_status(status_code: Optional[int]) -> bool:
    """A client error other than 429 means retrying cannot help."""
    return status_code is not None and 400 <= status_code < 500 and status_code != 429
