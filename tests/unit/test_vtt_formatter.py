"""Tests for WebVTT rendering of raw transcripts."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from subtitle_ingest.formatters.vtt import (
    Cue,
    create_fallback_vtt,
    format_vtt,
    parse_cues,
    parse_timestamp_to_seconds,
    render_vtt,
    seconds_to_vtt_timestamp,
)

FIXED_TIME = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class TestSecondsToTimestamp:
    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (0, "00:00:00.000"),
            (1.5, "00:00:01.500"),
            (61.001, "00:01:01.001"),
            (3723.25, "01:02:03.250"),
            (-1, "00:00:00.000"),
            (float("nan"), "00:00:00.000"),
        ],
    )
    def test_format(self, seconds, expected):
        assert seconds_to_vtt_timestamp(seconds) == expected


class TestParseTimestamp:
    @pytest.mark.parametrize(
        "marker,expected",
        [
            ("[00:05.250]", 5.25),
            ("[1:05]", 65.0),
            ("(01:02:03)", 3723.0),
            ("[00:01.5]", 1.5),
            ("[00:01.12345]", 1.123),
            ("[1m45s]", 105.0),
            ("1h2m30s", 3750.0),
            ("[2m3s250ms]", 123.25),
        ],
    )
    def test_formats(self, marker, expected):
        assert parse_timestamp_to_seconds(marker) == pytest.approx(expected)

    def test_unparseable_gives_zero(self, caplog):
        assert parse_timestamp_to_seconds("[soon]") == 0.0
        assert any("Could not parse timestamp" in r.message for r in caplog.records)


class TestParseCues:
    def test_single_marker_segments(self):
        cues = parse_cues("[00:00.000] Hello there.\n[00:04.000] General greeting.")

        assert [c.text for c in cues] == ["Hello there.", "General greeting."]
        assert cues[0].start == 0.0
        # two words: 0.5s each, minimum 3s
        assert cues[0].end == 3.0
        assert cues[1].start == 4.0

    def test_start_and_end_markers(self):
        cues = parse_cues("[00:10.000] A short line [00:12.500]")
        assert (cues[0].start, cues[0].end) == (10.0, 12.5)
        assert cues[0].text == "A short line"

    def test_end_before_start_uses_estimate(self):
        cues = parse_cues("[00:10.000] Backwards timing here [00:05.000]")
        assert cues[0].end == 13.0

    def test_long_text_capped_at_seven_seconds(self):
        words = " ".join(["word"] * 40)
        cues = parse_cues(f"[00:00.000] {words}")
        assert cues[0].end == 7.0

    def test_speaker_labels(self):
        cues = parse_cues("[00:01.000] Speaker 2: I agree.")
        assert cues[0].speaker == "Speaker 2"
        assert cues[0].text == "I agree."
        assert "<v Speaker 2>I agree.</v>" in cues[0].render(1)

    def test_paragraph_split(self):
        raw = "[00:00.000] First paragraph\ncontinues here.\n\n[00:05.000] Second."
        cues = parse_cues(raw)
        assert [c.text for c in cues] == ["First paragraph continues here.", "Second."]

    def test_segments_without_markers_are_skipped(self):
        raw = "Intro without time.\n\n[00:02.000] Timed line."
        assert [c.text for c in parse_cues(raw)] == ["Timed line."]

    def test_no_markers_creates_evenly_paced_cues(self):
        words = [f"w{i}" for i in range(25)]
        cues = parse_cues(" ".join(words))

        assert len(cues) == 3
        assert [(c.start, c.end) for c in cues] == [(0.0, 2.5), (2.5, 5.0), (5.0, 6.25)]
        assert cues[0].text == " ".join(words[:10])


class TestFormatVtt:
    def test_document_layout(self):
        vtt = format_vtt(
            "[00:00.000] Speaker 1: Hi.\n[00:03.000] Speaker 2: Hello.",
            title="gemini-2.0-flash",
            generated_at=FIXED_TIME,
        )

        assert vtt == (
            "WEBVTT - gemini-2.0-flash\n"
            "NOTE Generated on 2024-01-02T03:04:05+00:00\n"
            "\n"
            "1\n"
            "00:00:00.000 --> 00:00:03.000\n"
            "<v Speaker 1>Hi.</v>\n"
            "\n"
            "2\n"
            "00:00:03.000 --> 00:00:06.000\n"
            "<v Speaker 2>Hello.</v>\n"
        )

    def test_plain_header_without_title(self):
        assert format_vtt("[00:00.000] Hi.", generated_at=FIXED_TIME).startswith("WEBVTT\n")

    def test_fallback_when_markers_carry_no_text(self):
        vtt = format_vtt("[00:00.000]\n[00:05.000]", generated_at=FIXED_TIME)
        assert vtt.startswith("WEBVTT - Fallback Generation\n")

    def test_fallback_paces_sentences(self):
        vtt = create_fallback_vtt("One two. Three four five!", generated_at=FIXED_TIME)

        assert "00:00:00.000 --> 00:00:03.600\nOne two." in vtt
        assert "00:00:03.600 --> 00:00:07.500\nThree four five!" in vtt

    def test_render_numbering(self):
        vtt = render_vtt([Cue(0, 1, "a"), Cue(1, 2, "b")], generated_at=FIXED_TIME)
        assert "\n1\n00:00:00.000 --> 00:00:01.000\na\n" in vtt
        assert "\n2\n00:00:01.000 --> 00:00:02.000\nb\n" in vtt
