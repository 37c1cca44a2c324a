"""WebVTT rendering of raw, timestamp-annotated transcripts.

The transcription prompt asks for ``[MM:SS.mmm]`` markers every few seconds and
``Speaker N:`` labels. Model output is not always that tidy, so parsing accepts
``[HH:MM:SS]``, ``(MM:SS)`` and ``[1m45s]`` markers too, estimates missing end
times from the text length, and falls back to evenly paced cues when the text
carries no usable markers at all.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

logger = logging.getLogger(__name__)

TIMESTAMP_PATTERN = re.compile(
    r"[\[(](?:(\d+):)?(\d+):(\d+)(?:\.(\d+))?[\])]"
    r"|[\[(](\d+)m(\d+)s(?:(\d+)ms)?[\])]"
)
_SEGMENT_SPLIT = re.compile(r"\n\s*\n|\n(?=[\[(])")
_SPEAKER_LABEL = re.compile(r"^(Speaker \d+|[A-Z][a-z]+ \d+):\s*")
_HMS_FORMAT = re.compile(r"^(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s)?(?:(\d+)ms)?$")
_CLOCK_FORMAT = re.compile(r"^(?:(\d+):)?(\d+):(\d+)(?:\.(\d+))?$")
_SENTENCE_END = re.compile(r"([.!?])\s+")

WORDS_PER_ARTIFICIAL_CUE = 10
SECONDS_PER_ARTIFICIAL_CUE = 2.5
MIN_CUE_SECONDS = 3.0
MAX_CUE_SECONDS = 7.0
SECONDS_PER_WORD = 0.5


@dataclass
class Cue:
    """One subtitle cue, times in seconds."""

    start: float
    end: float
    text: str
    speaker: Optional[str] = None

    def render(self, index: int) -> str:
        payload = f"<v {self.speaker}>{self.text}</v>" if self.speaker else self.text
        return (
            f"{index}\n"
            f"{seconds_to_vtt_timestamp(self.start)} --> {seconds_to_vtt_timestamp(self.end)}\n"
            f"{payload}\n"
        )


def seconds_to_vtt_timestamp(seconds: float) -> str:
    """Format seconds as ``HH:MM:SS.mmm``. Negative or NaN input gives zero."""
    if seconds is None or math.isnan(seconds) or seconds < 0:
        return "00:00:00.000"
    total_ms = int(round(seconds * 1000))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, millis = divmod(rem, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}"


def parse_timestamp_to_seconds(timestamp: str) -> float:
    """Parse a transcript marker such as ``[01:02.5]``, ``(1:02:03)`` or ``1m45s``.

    Fractions are read as milliseconds: ``.5`` is 500 ms and digits past the
    third are dropped. Unparseable markers log a warning and give 0.
    """
    clean = re.sub(r"[\[\]()]", "", timestamp).strip()

    match = _HMS_FORMAT.match(clean)
    if match and clean:
        hours, minutes, secs, millis = (int(g or 0) for g in match.groups())
        return hours * 3600 + minutes * 60 + secs + millis / 1000

    match = _CLOCK_FORMAT.match(clean)
    if match:
        hours = int(match.group(1) or 0)
        minutes = int(match.group(2))
        secs = int(match.group(3))
        fraction = match.group(4)
        millis = int(fraction.ljust(3, "0")[:3]) if fraction else 0
        return hours * 3600 + minutes * 60 + secs + millis / 1000

    logger.warning(f"Could not parse timestamp: {timestamp}")
    return 0.0


def _estimated_duration(text: str) -> float:
    words = len(text.split())
    return max(MIN_CUE_SECONDS, min(words * SECONDS_PER_WORD, MAX_CUE_SECONDS))


def _artificial_cues(raw: str) -> List[Cue]:
    words = raw.split()
    total = len(words) / WORDS_PER_ARTIFICIAL_CUE * SECONDS_PER_ARTIFICIAL_CUE
    cues = []
    for i in range(0, len(words), WORDS_PER_ARTIFICIAL_CUE):
        chunk = words[i : i + WORDS_PER_ARTIFICIAL_CUE]
        start = i / WORDS_PER_ARTIFICIAL_CUE * SECONDS_PER_ARTIFICIAL_CUE
        end = min(start + SECONDS_PER_ARTIFICIAL_CUE, total)
        cues.append(Cue(start, end, " ".join(chunk)))
    return cues


def parse_cues(raw: str) -> List[Cue]:
    """Split a raw transcript into cues.

    A segment is a paragraph, or a line starting with a marker. Its first marker
    is the cue start and its last marker, if different, the end. Otherwise the
    end is estimated from the word count (0.5 s per word, 3 to 7 s).
    """
    if not TIMESTAMP_PATTERN.search(raw):
        logger.info("No timestamps detected in transcript, creating evenly paced cues")
        return _artificial_cues(raw)

    cues: List[Cue] = []
    for segment in _SEGMENT_SPLIT.split(raw):
        if not segment.strip():
            continue
        markers = list(TIMESTAMP_PATTERN.finditer(segment))
        if not markers:
            continue

        text = TIMESTAMP_PATTERN.sub("", segment).strip()
        if not text:
            continue

        start = parse_timestamp_to_seconds(markers[0].group(0))
        duration = _estimated_duration(text)
        if len(markers) > 1:
            end = parse_timestamp_to_seconds(markers[-1].group(0))
        else:
            end = start + duration
        if end <= start:
            logger.debug(f"Invalid cue timing {start} >= {end}, using estimated duration")
            end = start + duration

        speaker = None
        label = _SPEAKER_LABEL.match(text)
        if label:
            speaker = label.group(1)
            text = text[label.end():]

        cues.append(Cue(start, end, " ".join(text.split()), speaker))
    return cues


def _header(title: Optional[str], generated_at: Optional[datetime]) -> str:
    stamp = (generated_at or datetime.now(timezone.utc)).isoformat()
    first = f"WEBVTT - {title}" if title else "WEBVTT"
    return f"{first}\nNOTE Generated on {stamp}\n\n"


def render_vtt(
    cues: List[Cue], title: Optional[str] = None, generated_at: Optional[datetime] = None
) -> str:
    """Render cues as a WebVTT document."""
    body = "\n".join(cue.render(i) for i, cue in enumerate(cues, start=1))
    return _header(title, generated_at) + body


def create_fallback_vtt(text: str, generated_at: Optional[datetime] = None) -> str:
    """One cue per sentence, 3 s plus 0.3 s per word, back to back."""
    cues = []
    current = 0.0
    for sentence in _SENTENCE_END.sub(r"\1\n", text).split("\n"):
        sentence = sentence.strip()
        if not sentence:
            continue
        duration = 3 + len(sentence.split()) * 0.3
        cues.append(Cue(current, current + duration, sentence))
        current += duration
    return render_vtt(cues, "Fallback Generation", generated_at)


def format_vtt(
    raw: str, title: Optional[str] = None, generated_at: Optional[datetime] = None
) -> str:
    """Convert a raw transcript to WebVTT, falling back to sentence pacing."""
    cues = parse_cues(raw)
    if not cues:
        logger.warning("No valid cues were created from the transcript, using fallback")
        return create_fallback_vtt(raw, generated_at)
    return render_vtt(cues, title, generated_at)
