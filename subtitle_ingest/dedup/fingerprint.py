"""Content fingerprinting.

A fingerprint is the lowercase hex SHA-256 digest of the full byte content. It
depends on nothing but the bytes, so the same video uploaded under a different
name or mime type maps to the same identity.
"""
from __future__ import annotations

import hashlib
import re
from pathlib import Path
from typing import Union

Fingerprint = str

DEFAULT_CHUNK_SIZE = 8192

_FINGERPRINT_RE = re.compile(r"[0-9a-f]{64}")

BytesLike = Union[bytes, bytearray, memoryview]


class ContentFingerprinter:
    """SHA-256 content hashing for uploads."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size

    def fingerprint(self, data: BytesLike) -> Fingerprint:
        """Hash an in-memory buffer.

        Args:
            data: Raw content; empty input is valid

        Returns:
            64-character lowercase hex digest

        Raises:
            TypeError: If data is not bytes-like
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError(f"fingerprint expects bytes-like data, got {type(data).__name__}")
        return hashlib.sha256(data).hexdigest()

    def fingerprint_file(self, path: Union[str, Path]) -> Fingerprint:
        """Hash a file in chunks, yielding the same digest as hashing its bytes."""
        hasher = hashlib.sha256()
        with open(path, "rb") as f:
            while chunk := f.read(self.chunk_size):
                hasher.update(chunk)
        return hasher.hexdigest()


_default = ContentFingerprinter()


def fingerprint(data: BytesLike) -> Fingerprint:
    """Fingerprint bytes with the default fingerprinter."""
    return _default.fingerprint(data)


def fingerprint_file(path: Union[str, Path], chunk_size: int = DEFAULT_CHUNK_SIZE) -> Fingerprint:
    """Fingerprint a file on disk."""
    return ContentFingerprinter(chunk_size).fingerprint_file(path)


def is_fingerprint(value: object) -> bool:
    """Check that a value looks like a fingerprint (64 lowercase hex chars)."""
    return isinstance(value, str) and bool(_FINGERPRINT_RE.fullmatch(value))
