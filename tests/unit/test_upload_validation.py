"""Tests for upload metadata validation."""
from __future__ import annotations

import pytest

from subtitle_ingest.exceptions import InvalidInputError
from subtitle_ingest.utils.validation import DEFAULT_MAX_FILE_SIZE, validate_upload

DATA = b"\x00" * 128


class TestValidateUpload:
    def test_accepts_valid_video(self):
        validate_upload(DATA, "clip.mp4", len(DATA), "video/mp4")

    @pytest.mark.parametrize("mime", ["audio/mpeg", "image/png", "", "application/octet-stream"])
    def test_rejects_non_video_mime(self, mime):
        with pytest.raises(InvalidInputError) as exc_info:
            validate_upload(DATA, "clip.mp4", len(DATA), mime)
        assert exc_info.value.status_code == 400

    def test_mime_prefix_is_case_insensitive(self):
        validate_upload(DATA, "clip.mov", len(DATA), "Video/QuickTime")

    @pytest.mark.parametrize("size", [0, -1])
    def test_rejects_non_positive_size(self, size):
        with pytest.raises(InvalidInputError):
            validate_upload(b"", "clip.mp4", size, "video/mp4")

    def test_rejects_oversized(self):
        with pytest.raises(InvalidInputError, match="too large"):
            validate_upload(DATA, "clip.mp4", DEFAULT_MAX_FILE_SIZE + 1, "video/mp4")

    def test_custom_limit(self):
        with pytest.raises(InvalidInputError):
            validate_upload(DATA, "clip.mp4", len(DATA), "video/mp4", max_file_size=64)

    @pytest.mark.parametrize("name", ["", "   "])
    def test_rejects_empty_name(self, name):
        with pytest.raises(InvalidInputError):
            validate_upload(DATA, name, len(DATA), "video/mp4")

    def test_rejects_size_mismatch(self):
        with pytest.raises(InvalidInputError, match="does not match"):
            validate_upload(DATA, "clip.mp4", len(DATA) + 1, "video/mp4")

    def test_error_body(self):
        with pytest.raises(InvalidInputError) as exc_info:
            validate_upload(DATA, "clip.mp4", len(DATA), "audio/wav")
        body = exc_info.value.to_dict()
        assert body["status"] == "error"
        assert body["status_code"] == 400
        assert body["error"] == "InvalidInputError"
