"""Intermediate representation dataclasses for engine output and results.

WHY: The engine returns loosely structured data: flat token timings,
a raw text/duration pair, unordered speaker spans. The bridge needs a
single, well-typed form that the normalizers consume and produce, kept
separate from the pydantic wire models so the core stays free of
serialization concerns.

HOW: Two groups of dataclasses:
  Engine side: TokenTiming, EngineTranscription, RawSpeakerSpan
  Result side: Word, Segment, Transcript, SpeakerTurn, Diarization
plus VocabularyTerm for tokenized boosting entries.

RULES:
- Engine-side times are float seconds on the engine clock
- Result-side times are integer milliseconds with end >= start + 1
- Segments and speaker turns never overlap within a sequence
- Word.segment_index is None until the indexer assigns it
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


# ---------------------------------------------------------------------------
# Engine side
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TokenTiming:
    """One decoded sub-word unit as emitted by the ASR engine.

    RULES:
    - token: raw text, may carry a boundary marker prefix ("▁", "Ġ", " ")
    - start_s / end_s: float seconds, engine clock
    - confidence: engine score, carried but not used for assembly
    """

    token: str
    start_s: float
    end_s: float
    confidence: float = 1.0


@dataclass
class EngineTranscription:
    """Raw result of one engine transcribe call.

    RULES:
    - token_timings is None when the engine only produced text
    """

    text: str
    duration_s: float
    token_timings: Optional[List[TokenTiming]] = None


@dataclass(frozen=True)
class RawSpeakerSpan:
    """One speaker span as emitted by the diarization engine (may overlap)."""

    start_s: float
    end_s: float
    speaker: str


@dataclass(frozen=True)
class VocabularyTerm:
    """A custom vocabulary term tokenized against the auxiliary tokenizer."""

    text: str
    ctc_token_ids: List[int]
    weight: float = 10.0


# ---------------------------------------------------------------------------
# Result side
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Word:
    """A whole word merged from one or more token timings.

    RULES:
    - end_ms >= start_ms + 1 (zero-length words get a synthesized 1 ms)
    - segment_index: index into Transcript.segments, set by assign_segments
    """

    start_ms: int
    end_ms: int
    text: str
    segment_index: Optional[int] = None


@dataclass(frozen=True)
class Segment:
    """A display-sized run of words with a time span."""

    start_ms: int
    end_ms: int
    text: str


@dataclass
class Transcript:
    """Complete transcription result handed to the caller.

    RULES:
    - words is None when the caller asked for segments only, or when the
      engine produced no token timings
    """

    schema_version: int
    engine: str
    text: str
    segments: List[Segment] = field(default_factory=list)
    words: Optional[List[Word]] = None


@dataclass(frozen=True)
class SpeakerTurn:
    """One continuous span attributed to a single, non-empty speaker label."""

    start_ms: int
    end_ms: int
    speaker: str


@dataclass
class Diarization:
    """Ordered, non-overlapping speaker turns for one audio file."""

    schema_version: int
    turns: List[SpeakerTurn] = field(default_factory=list)
