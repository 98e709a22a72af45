"""Cleanup of raw diarization spans into ordered speaker turns.

WHY: Diarization engines emit spans in arbitrary order, with overlaps at
speaker changes, zero-length blips, and occasionally blank labels.
Hosts render turns on a single timeline and need them ordered and
non-overlapping.

HOW: Sort by (start, end), convert to milliseconds, and walk once while
tracking the end of the last emitted turn. Overlapping starts are pushed
forward to that end.

RULES:
- Spans whose converted end is not after their start are discarded
- A turn never starts before the previous turn's end
- Every emitted turn has end >= start + 1
- Speaker labels are trimmed; blank labels are discarded
"""

from __future__ import annotations

from typing import Iterable, List

from speech_bridge.config import SCHEMA_VERSION
from speech_bridge.core.ir import Diarization, RawSpeakerSpan, SpeakerTurn
from speech_bridge.core.timing import at_least_one_ms_after, to_ms


def normalize(raw_spans: Iterable[RawSpeakerSpan]) -> List[SpeakerTurn]:
    """Sort, clamp, and filter raw spans into non-overlapping turns."""
    ordered = sorted(raw_spans, key=lambda s: (s.start_s, s.end_s))

    turns: List[SpeakerTurn] = []
    previous_end_ms = 0

    for span in ordered:
        start_ms = to_ms(span.start_s)
        end_ms = to_ms(span.end_s)
        if end_ms <= start_ms:
            continue

        start_ms = max(start_ms, previous_end_ms)
        end_ms = at_least_one_ms_after(start_ms, end_ms)

        speaker = span.speaker.strip()
        if not speaker:
            continue

        turns.append(SpeakerTurn(start_ms=start_ms, end_ms=end_ms, speaker=speaker))
        previous_end_ms = end_ms

    return turns


def build_diarization(raw_spans: Iterable[RawSpeakerSpan]) -> Diarization:
    return Diarization(schema_version=SCHEMA_VERSION, turns=normalize(raw_spans))
