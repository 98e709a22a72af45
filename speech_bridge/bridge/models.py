"""Pydantic wire models for requests, payloads, and envelopes.

WHY: Everything crossing the boundary is a versioned JSON document with
snake_case keys. Pydantic models decode request bytes with precise error
messages and encode payloads without hand-written dict plumbing.

HOW: Request models (BridgeConfig, TranscribeOptions, DiarizeOptions)
are decoded from host bytes. Payload models mirror the core IR on the
wire. Envelope wraps either a payload or an ErrorPayload.

RULES:
- Field names are the wire keys (snake_case); change with care
- Optional fields left as None are omitted from encoded output
- Python 3.9+ compatible (Optional/List from typing in models)
"""

from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field

from speech_bridge.config import SCHEMA_VERSION
from speech_bridge.core.ir import Diarization, Segment, SpeakerTurn, Transcript, Word


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class BridgeConfig(BaseModel):
    """Session creation request.

    RULES:
    - schema_version must equal SCHEMA_VERSION (checked at validation)
    - asr_model_dir is required; diarization_model_dir enables diarize()
    - runtime_platform_major must meet MIN_PLATFORM_MAJOR
    """

    schema_version: int = Field(description="Wire schema version of the request.")
    asr_model_dir: str = Field(description="Directory holding the ASR models.")
    diarization_model_dir: Optional[str] = Field(
        default=None,
        description="Directory holding the diarization models; required for diarize().",
    )
    runtime_platform_major: int = Field(description="Host platform major version.")


class TranscribeOptions(BaseModel):
    schema_version: int = Field(description="Wire schema version of the request.")
    language_hint: Optional[str] = Field(default=None, description="Optional language hint.")
    vocabulary: List[str] = Field(description="Custom terms to boost.")
    timestamps: str = Field(
        description="'word_preferred' for word-level output, 'segments_only' to omit words.",
    )


class DiarizeOptions(BaseModel):
    schema_version: int = Field(description="Wire schema version of the request.")
    speaker_count: Optional[int] = Field(
        default=None,
        description="Known number of speakers; must be positive when given.",
    )


# ---------------------------------------------------------------------------
# Payload models
# ---------------------------------------------------------------------------


class SegmentPayload(BaseModel):
    start_ms: int
    end_ms: int
    text: str

    @classmethod
    def from_ir(cls, segment: Segment) -> SegmentPayload:
        return cls(start_ms=segment.start_ms, end_ms=segment.end_ms, text=segment.text)


class WordPayload(BaseModel):
    start_ms: int
    end_ms: int
    text: str
    segment_index: Optional[int] = None

    @classmethod
    def from_ir(cls, word: Word) -> WordPayload:
        return cls(
            start_ms=word.start_ms,
            end_ms=word.end_ms,
            text=word.text,
            segment_index=word.segment_index,
        )


class TranscriptPayload(BaseModel):
    schema_version: int
    engine: str
    text: str
    segments: List[SegmentPayload]
    words: Optional[List[WordPayload]] = None

    @classmethod
    def from_ir(cls, transcript: Transcript) -> TranscriptPayload:
        return cls(
            schema_version=transcript.schema_version,
            engine=transcript.engine,
            text=transcript.text,
            segments=[SegmentPayload.from_ir(s) for s in transcript.segments],
            words=(
                [WordPayload.from_ir(w) for w in transcript.words]
                if transcript.words is not None
                else None
            ),
        )


class SpeakerTurnPayload(BaseModel):
    start_ms: int
    end_ms: int
    speaker: str

    @classmethod
    def from_ir(cls, turn: SpeakerTurn) -> SpeakerTurnPayload:
        return cls(start_ms=turn.start_ms, end_ms=turn.end_ms, speaker=turn.speaker)


class DiarizationPayload(BaseModel):
    schema_version: int
    turns: List[SpeakerTurnPayload]

    @classmethod
    def from_ir(cls, diarization: Diarization) -> DiarizationPayload:
        return cls(
            schema_version=diarization.schema_version,
            turns=[SpeakerTurnPayload.from_ir(t) for t in diarization.turns],
        )


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class ErrorPayload(BaseModel):
    code: str
    message: str


class Envelope(BaseModel):
    """Versioned success/error wrapper for every cross-boundary response.

    RULES:
    - ok=True carries data and no error
    - ok=False carries error and no data
    """

    schema_version: int = SCHEMA_VERSION
    ok: bool
    data: Optional[Union[TranscriptPayload, DiarizationPayload]] = None
    error: Optional[ErrorPayload] = None
