"""Unit tests for segmentation, the text fallback, and word indexing.

WHY: Segments drive caption rendering and word highlighting. Overlapping
or zero-length segments break host timelines; a word pointing at the
wrong segment highlights the wrong caption.

HOW: Tests build Word lists directly (no token merging) and check each
break rule, the proportional text fallback, and the forward-only
indexing cursor.

RULES:
- Every emitted segment satisfies end >= start + 1
- Segments never overlap
"""

import pytest

from speech_bridge.core.ir import Segment, Word
from speech_bridge.core.segmenter import (
    MAX_WORDS_PER_SEGMENT,
    assign_segments,
    build_segments,
    build_segments_from_text,
    word_ends_sentence,
)


def _words(*entries):
    return [Word(start_ms=s, end_ms=e, text=t) for t, s, e in entries]


def _assert_well_formed(segments):
    for segment in segments:
        assert segment.end_ms >= segment.start_ms + 1
    for previous, current in zip(segments, segments[1:]):
        assert current.start_ms >= previous.end_ms


class TestBreakRules:
    def test_gap_and_sentence_end(self):
        words = _words(
            ("Hello", 0, 400),
            ("world.", 420, 900),
            ("Next", 2000, 2300),
            ("block", 2320, 2700),
        )
        assert build_segments(words) == [
            Segment(0, 900, "Hello world."),
            Segment(2000, 2700, "Next block"),
        ]

    def test_gap_alone_breaks(self):
        words = _words(("one", 0, 100), ("two", 900, 1000))
        assert [s.text for s in build_segments(words)] == ["one", "two"]

    def test_gap_of_exactly_threshold_does_not_break(self):
        words = _words(("one", 0, 100), ("two", 850, 1000))
        assert [s.text for s in build_segments(words)] == ["one two"]

    @pytest.mark.parametrize("mark", [".", "!", "?", ";", ":"])
    def test_sentence_final_marks(self, mark):
        words = _words(("stop" + mark, 0, 100), ("go", 120, 200))
        assert [s.text for s in build_segments(words)] == ["stop" + mark, "go"]

    def test_comma_does_not_break(self):
        assert not word_ends_sentence("well,")
        assert not word_ends_sentence("")

    def test_duration_cap(self):
        words = _words(("long", 0, 3000), ("talk", 3000, 6000), ("after", 6100, 6300))
        segments = build_segments(words)
        assert [s.text for s in segments] == ["long talk", "after"]
        assert segments[0].end_ms == 6000

    def test_word_count_cap(self):
        words = [Word(i * 100, i * 100 + 90, "w{}".format(i)) for i in range(MAX_WORDS_PER_SEGMENT + 3)]
        segments = build_segments(words)
        assert len(segments) == 2
        assert len(segments[0].text.split()) == MAX_WORDS_PER_SEGMENT
        assert len(segments[1].text.split()) == 3

    def test_empty_input(self):
        assert build_segments([]) == []


class TestSegmentShape:
    def test_overlapping_words_are_clamped(self):
        words = _words(("a.", 0, 500), ("b.", 300, 700))
        segments = build_segments(words)
        assert segments == [Segment(0, 500, "a."), Segment(500, 700, "b.")]
        _assert_well_formed(segments)

    def test_swallowed_segment_gets_one_ms(self):
        words = _words(("a.", 0, 500), ("b.", 100, 200))
        segments = build_segments(words)
        assert segments[1] == Segment(500, 501, "b.")
        _assert_well_formed(segments)


class TestTextFallback:
    def test_empty_text(self):
        assert build_segments_from_text("   ", 5000) == []

    def test_short_text_is_one_segment(self):
        assert build_segments_from_text(" a b c ", 3000) == [Segment(0, 3000, "a b c")]

    def test_single_chunk_with_zero_duration_spans_one_ms(self):
        assert build_segments_from_text("a b", 0) == [Segment(0, 1, "a b")]

    def test_long_text_is_chunked_proportionally(self):
        text = " ".join("w{}".format(i) for i in range(90))
        segments = build_segments_from_text(text, 300_000)

        # 3333 ms per word → 3 words per 10 s target, clamped up to 4
        assert [len(s.text.split()) for s in segments[:-1]] == [4] * 22
        assert len(segments[-1].text.split()) == 2
        assert segments[0].start_ms == 0
        assert segments[1].start_ms == 300_000 * 4 // 90
        assert segments[-1].end_ms == 300_000
        _assert_well_formed(segments)

    def test_fast_speech_is_capped_at_max_chunk(self):
        text = " ".join("w{}".format(i) for i in range(60))
        segments = build_segments_from_text(text, 6000)
        assert [len(s.text.split()) for s in segments] == [24, 24, 12]
        assert segments[-1].end_ms == 6000


class TestAssignSegments:
    def test_words_follow_their_segments(self):
        words = _words(
            ("Hello", 0, 400),
            ("world.", 420, 900),
            ("Next", 2000, 2300),
            ("block", 2320, 2700),
        )
        segments = build_segments(words)
        indexed = assign_segments(words, segments)
        assert [w.segment_index for w in indexed] == [0, 0, 1, 1]

    def test_returns_copies(self):
        words = _words(("one", 0, 100))
        indexed = assign_segments(words, [Segment(0, 100, "one")])
        assert words[0].segment_index is None
        assert indexed[0].segment_index == 0

    def test_no_segments_gives_no_index(self):
        words = _words(("one", 0, 100))
        assert assign_segments(words, [])[0].segment_index is None

    def test_word_past_last_segment_gets_last_index(self):
        words = _words(("one", 0, 100), ("late", 5000, 5100))
        indexed = assign_segments(words, [Segment(0, 100, "one"), Segment(200, 300, "two")])
        assert [w.segment_index for w in indexed] == [0, 1]

    def test_straddling_word_gets_cursor_index(self):
        segments = [Segment(0, 500, "a"), Segment(500, 1000, "b")]
        indexed = assign_segments(_words(("x", 400, 600)), segments)
        assert indexed[0].segment_index == 0

    def test_idempotent(self):
        words = _words(("a.", 0, 500), ("b", 480, 700), ("c.", 2000, 2100))
        segments = build_segments(words)
        once = assign_segments(words, segments)
        twice = assign_segments(once, segments)
        assert [w.segment_index for w in once] == [w.segment_index for w in twice]
        assert all(w.segment_index is not None for w in twice)
