"""Subtitle output formatters."""

from .vtt import format_vtt, parse_cues, parse_timestamp_to_seconds, seconds_to_vtt_timestamp

__all__ = [
    "format_vtt",
    "parse_cues",
    "parse_timestamp_to_seconds",
    "seconds_to_vtt_timestamp",
]
