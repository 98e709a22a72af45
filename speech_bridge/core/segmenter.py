"""Display segmentation of words, text-only fallback, and word indexing.

WHY: Words alone are too fine-grained for caption-style rendering, and a
single block of text is too coarse. Segments group words into readable,
non-overlapping chunks; each word then records which segment owns it so
hosts can highlight words inside captions.

HOW: build_segments accumulates words into a run and flushes on a silence
gap, sentence-final punctuation, a duration cap, or a word-count cap.
build_segments_from_text is used when the engine gave no token timings:
it chunks whitespace-split text and spaces the chunks proportionally
across the audio duration. assign_segments walks words and segments with
a single forward cursor.

RULES:
- Gap break: > 750 ms between a word's start and the previous word's end
- Run break: last word ends in . ! ? ; : or the run lasts >= 6000 ms
  or the run holds 14 words
- Emitted segment start is clamped to the previous segment's end
- Every segment has end >= start + 1
- Text fallback targets ~10000 ms per chunk, 4..24 words per chunk, and
  its final chunk always ends at exactly duration_ms
- Once segments exist, every word gets an index (never None)
"""

from __future__ import annotations

from dataclasses import replace
from typing import List, Sequence

from speech_bridge.core.ir import Segment, Word
from speech_bridge.core.timing import at_least_one_ms_after, saturating_sub

GAP_BREAK_MS = 750
MAX_SEGMENT_MS = 6_000
MAX_WORDS_PER_SEGMENT = 14

TEXT_TARGET_SEGMENT_MS = 10_000
TEXT_MIN_CHUNK_WORDS = 4
TEXT_MAX_CHUNK_WORDS = 24

_SENTENCE_END = frozenset(".!?;:")


def word_ends_sentence(text: str) -> bool:
    return bool(text) and text[-1] in _SENTENCE_END


def build_segments(words: Sequence[Word]) -> List[Segment]:
    """Group words into display segments.

    Args:
        words: Ordered words from build_words.

    Returns:
        Ordered, non-overlapping segments. Empty input gives an empty list.
    """
    segments: List[Segment] = []
    current: List[Word] = []
    previous_end = 0

    def _flush() -> None:
        nonlocal previous_end
        if not current:
            return

        text = " ".join(w.text for w in current).strip()
        if not text:
            current.clear()
            return

        start = max(current[0].start_ms, previous_end)
        end = at_least_one_ms_after(start, current[-1].end_ms)

        segments.append(Segment(start_ms=start, end_ms=end, text=text))
        previous_end = end
        current.clear()

    for word in words:
        if current and saturating_sub(word.start_ms, current[-1].end_ms) > GAP_BREAK_MS:
            _flush()

        current.append(word)

        duration = saturating_sub(current[-1].end_ms, current[0].start_ms)
        if (
            word_ends_sentence(word.text)
            or duration >= MAX_SEGMENT_MS
            or len(current) >= MAX_WORDS_PER_SEGMENT
        ):
            _flush()

    _flush()
    return segments


def build_segments_from_text(text: str, duration_ms: int) -> List[Segment]:
    """Split plain text into proportionally timed segments.

    WHY: Some engine results carry only text and a duration. Hosts still
    need caption-sized segments with plausible timing.

    HOW: Estimates an average word duration, picks a chunk size that
    approximates TEXT_TARGET_SEGMENT_MS, and places each chunk at its
    word-index fraction of the total duration.

    Args:
        text: Transcript text; split on whitespace.
        duration_ms: Total audio duration in milliseconds.

    Returns:
        Ordered, non-overlapping segments; empty when text has no words.
    """
    tokens = text.split()
    if not tokens:
        return []

    total_words = len(tokens)
    average_word_ms = max(1, duration_ms // total_words)
    words_by_duration = TEXT_TARGET_SEGMENT_MS // average_word_ms
    chunk_words = max(TEXT_MIN_CHUNK_WORDS, min(TEXT_MAX_CHUNK_WORDS, words_by_duration))

    bounds = [
        (lower, min(total_words, lower + chunk_words))
        for lower in range(0, total_words, chunk_words)
    ]

    if len(bounds) == 1:
        return [Segment(start_ms=0, end_ms=max(1, duration_ms), text=text.strip())]

    segments: List[Segment] = []
    previous_end = 0
    for chunk_index, (lower, upper) in enumerate(bounds):
        start = max(duration_ms * lower // total_words, previous_end)
        if chunk_index == len(bounds) - 1:
            end = duration_ms
        else:
            end = duration_ms * upper // total_words
        end = at_least_one_ms_after(start, end)

        segments.append(Segment(start_ms=start, end_ms=end, text=" ".join(tokens[lower:upper])))
        previous_end = end

    return segments


def assign_segments(words: Sequence[Word], segments: Sequence[Segment]) -> List[Word]:
    """Return copies of words with segment_index set.

    HOW: A cursor advances (never regresses) while the word starts at or
    after the cursor segment's end and a next segment exists. A word fully
    inside the cursor segment gets its index; a word straddling a boundary
    gets the cursor index clamped into range.

    RULES:
    - No segments: every word gets segment_index=None
    - Idempotent for the same segments
    """
    if not segments:
        return [replace(w, segment_index=None) for w in words]

    last_index = len(segments) - 1
    cursor = 0
    indexed: List[Word] = []

    for word in words:
        while cursor < last_index and word.start_ms >= segments[cursor].end_ms:
            cursor += 1

        segment = segments[cursor]
        contained = segment.start_ms <= word.start_ms and word.end_ms <= segment.end_ms
        # Straddling words fall back to the nearest valid cursor position
        segment_index = cursor if contained else max(0, min(cursor, last_index))

        indexed.append(replace(word, segment_index=segment_index))

    return indexed
