"""Sub-word token merging and Transcript construction.

WHY: ASR engines use sub-word tokenizers, splitting "Garen" into
["▁G", "aren"] and attaching punctuation and contractions as separate
unmarked tokens ([",", "'", "m"]). Hosts need whole words with unified
millisecond timing, grouped into segments, with each word pointing at its
segment.

HOW: A leading boundary marker (whitespace, "▁", "Ġ", "Ċ") signals a new
word. Unmarked tokens are appended to the current word, unless they start
more than WORD_GAP_BREAK_MS after it ends; a pause recovers boundaries
lost during decoding. build_transcript then runs segmentation and
indexing, falling back to text-only segments when no timings exist.

RULES:
- Marker-prefixed token → new word (markers stripped from output text)
- First token with visible text → new word (even without a marker)
- Token starting > 220 ms after the current word's end → new word
- Tokens with no visible text after stripping are skipped entirely
- Every token and every word spans at least 1 ms
- build_words returns None when no word results
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from speech_bridge.config import SCHEMA_VERSION
from speech_bridge.core.ir import EngineTranscription, TokenTiming, Transcript, Word
from speech_bridge.core.segmenter import (
    assign_segments,
    build_segments,
    build_segments_from_text,
)
from speech_bridge.core.timing import at_least_one_ms_after, to_ms

logger = logging.getLogger(__name__)

WORD_GAP_BREAK_MS = 220

SEGMENTS_ONLY = "segments_only"
WORD_PREFERRED = "word_preferred"

# SentencePiece word start, byte-level BPE space and newline
_BOUNDARY_MARKERS = frozenset("▁ĠĊ")


def is_boundary_char(char: str) -> bool:
    return char.isspace() or char in _BOUNDARY_MARKERS


def starts_word_boundary(token: str) -> bool:
    return bool(token) and is_boundary_char(token[0])


def strip_boundary_prefix(token: str) -> str:
    index = 0
    while index < len(token) and is_boundary_char(token[index]):
        index += 1
    return token[index:]


def build_words(timings: Sequence[TokenTiming]) -> Optional[List[Word]]:
    """Merge sub-word token timings into whole words.

    Args:
        timings: Ordered token timings from the engine.

    Returns:
        Ordered words, or None when the input is empty or no token
        carries visible text.
    """
    if not timings:
        return None

    words: List[Word] = []

    # Accumulator for building multi-token words
    current_text = ""
    current_start_ms = 0
    current_end_ms = 0

    def _flush_current() -> None:
        nonlocal current_text
        if current_text:
            words.append(Word(
                start_ms=current_start_ms,
                end_ms=at_least_one_ms_after(current_start_ms, current_end_ms),
                text=current_text,
            ))
            current_text = ""

    for timing in timings:
        cleaned = strip_boundary_prefix(timing.token).strip()
        if not cleaned:
            continue

        start_ms = to_ms(timing.start_s)
        end_ms = at_least_one_ms_after(start_ms, to_ms(timing.end_s))

        gap_break = bool(current_text) and start_ms > current_end_ms + WORD_GAP_BREAK_MS
        if starts_word_boundary(timing.token) or not current_text or gap_break:
            _flush_current()
            current_text = cleaned
            current_start_ms = start_ms
            current_end_ms = end_ms
        else:
            current_text += cleaned
            current_end_ms = end_ms

    _flush_current()
    return words or None


def build_transcript(
    result: EngineTranscription,
    engine_name: str,
    timestamps: str = WORD_PREFERRED,
) -> Transcript:
    """Build the Transcript for one engine transcription result.

    WHY: The engine result is raw; the host wants clean text, segments,
    and (unless it opted out) indexed words in one object.

    HOW: Words come from the token timings. Text is the trimmed engine
    text, or the words joined by spaces when the engine text is blank.
    Segments come from the words when there are any, else from the text
    spread over the reported duration.

    RULES:
    - timestamps == "segments_only" → words is None
    - No token timings → words is None regardless of timestamps
    - Any other timestamps value behaves like "word_preferred"
    """
    words = build_words(result.token_timings or [])

    text = result.text.strip()
    if not text and words:
        text = " ".join(w.text for w in words)

    if words:
        segments = build_segments(words)
    elif text:
        segments = build_segments_from_text(text, to_ms(result.duration_s))
    else:
        segments = []

    indexed: Optional[List[Word]] = None
    if timestamps != SEGMENTS_ONLY and words is not None:
        indexed = assign_segments(words, segments)

    logger.debug(
        "Assembled transcript: %d chars, %d segments, %s words",
        len(text), len(segments), len(indexed) if indexed is not None else "no",
    )

    return Transcript(
        schema_version=SCHEMA_VERSION,
        engine=engine_name,
        text=text,
        segments=segments,
        words=indexed,
    )
