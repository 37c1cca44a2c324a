"""Shared helpers: backoff math, logging setup and upload validation."""

from .retry import RetryConfig, calculate_delay, extract_status_code, is_terminal_status
from .validation import validate_upload

__all__ = [
    "RetryConfig",
    "calculate_delay",
    "extract_status_code",
    "is_terminal_status",
    "validate_upload",
]
