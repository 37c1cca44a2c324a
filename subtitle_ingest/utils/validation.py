"""Upload metadata validation.

Runs before any hashing or persistence, so a rejected upload never touches the
cache or the durable store.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..exceptions import InvalidInputError

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_SIZE = 4 * 1024 * 1024 * 1024  # 4GB
DEFAULT_MIME_PREFIX = "video/"


def validate_upload(
    data: bytes,
    file_name: str,
    file_size: int,
    mime_type: str,
    max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    mime_prefix: str = DEFAULT_MIME_PREFIX,
) -> None:
    """Check an upload's declared metadata against its bytes.

    Args:
        data: Uploaded content
        file_name: Client-supplied file name
        file_size: Client-declared size in bytes
        mime_type: Client-declared content type
        max_file_size: Largest accepted upload
        mime_prefix: Required content-type prefix

    Raises:
        InvalidInputError: If any check fails
    """
    error = _first_error(data, file_name, file_size, mime_type, max_file_size, mime_prefix)
    if error:
        logger.warning(f"Rejected upload {file_name!r}: {error}")
        raise InvalidInputError(error)


def _first_error(
    data: bytes,
    file_name: str,
    file_size: int,
    mime_type: str,
    max_file_size: int,
    mime_prefix: str,
) -> Optional[str]:
    if not isinstance(data, (bytes, bytearray, memoryview)):
        return "Upload content must be bytes"
    if not file_name or not file_name.strip():
        return "File name is required"
    if not mime_type or not mime_type.lower().startswith(mime_prefix):
        return "Invalid file type. Only video files are allowed."
    if isinstance(file_size, bool) or not isinstance(file_size, int) or file_size <= 0:
        return "File size must be a positive integer"
    if file_size > max_file_size:
        return f"File too large. Maximum size is {max_file_size // (1024 ** 3)}GB."
    if len(data) != file_size:
        return f"Declared size {file_size} does not match received {len(data)} bytes"
    return None
