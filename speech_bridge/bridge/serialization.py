"""Request decoding and envelope encoding for the boundary.

WHY: Request bytes come from another language and may be malformed;
responses must always be parseable JSON, even when encoding itself
fails. Centralizing both directions keeps the error mapping and the
fallback in one place.

HOW: decode_* parse UTF-8 JSON bytes into pydantic models and map any
validation error to InvalidPayloadError. encode_success/encode_error
build an Envelope, dump it with None fields omitted, validate it against
the bundled JSON Schema, and return UTF-8 bytes.

RULES:
- Decode failures → InvalidPayloadError("invalid <what> payload: ...")
- Every envelope carries SCHEMA_VERSION
- Any encoding/validation failure → FALLBACK_ERROR_ENVELOPE literal
"""

from __future__ import annotations

import json
import logging
from typing import Callable, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from speech_bridge.bridge.errors import BridgeError, InvalidPayloadError
from speech_bridge.bridge.models import (
    BridgeConfig,
    DiarizationPayload,
    DiarizeOptions,
    Envelope,
    ErrorPayload,
    TranscribeOptions,
    TranscriptPayload,
)
from speech_bridge.bridge.schema import validate_envelope
from speech_bridge.core.ir import Diarization, Transcript

logger = logging.getLogger(__name__)

FALLBACK_ERROR_ENVELOPE = (
    b'{"schema_version":1,"ok":false,'
    b'"error":{"code":"internal_failure","message":"encoding failure"}}'
)

_ModelT = TypeVar("_ModelT", bound=BaseModel)


def _decode(model: Type[_ModelT], data: bytes, label: str) -> _ModelT:
    try:
        return model.model_validate_json(data)
    except (ValidationError, ValueError) as exc:
        raise InvalidPayloadError(f"invalid {label} payload: {exc}") from exc


def decode_config(data: bytes) -> BridgeConfig:
    return _decode(BridgeConfig, data, "create config")


def decode_transcribe_options(data: bytes) -> TranscribeOptions:
    return _decode(TranscribeOptions, data, "transcribe options")


def decode_diarize_options(data: bytes) -> DiarizeOptions:
    return _decode(DiarizeOptions, data, "diarize options")


def encode_config(config: BridgeConfig) -> bytes:
    """Encode a create request; the host-side counterpart of decode_config."""
    return config.model_dump_json(exclude_none=True).encode("utf-8")


def _encode(build: Callable[[], Envelope]) -> bytes:
    try:
        document = build().model_dump(mode="json", exclude_none=True)
        validate_envelope(document)
        return json.dumps(document, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    except Exception:
        logger.exception("Envelope encoding failed; returning fallback error envelope")
        return FALLBACK_ERROR_ENVELOPE


def encode_success(result: Union[Transcript, Diarization]) -> bytes:
    def _build() -> Envelope:
        if isinstance(result, Transcript):
            return Envelope(ok=True, data=TranscriptPayload.from_ir(result))
        return Envelope(ok=True, data=DiarizationPayload.from_ir(result))

    return _encode(_build)


def encode_error(error: BridgeError) -> bytes:
    return _encode(
        lambda: Envelope(ok=False, error=ErrorPayload(code=error.code, message=error.message))
    )
