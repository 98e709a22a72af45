"""One loaded engine context plus its vocabulary-boosting state.

WHY: The host's calls are synchronous, but engine operations may be
coroutines, and an engine context must never run two operations at once.
A Session owns exactly one engine and serializes every operation on it
while distinct sessions run independently.

HOW: Each public operation validates its request, takes the session
lock, and runs the engine work on the session's EngineLoop: one event
loop on a dedicated thread, started at create and stopped at close. The
caller blocks on the result. Engine results are normalized by the core
modules before they are returned.

RULES:
- At most one engine operation in flight per Session
- Every engine call of a Session runs on the same event loop
- No timeout and no cancellation: a hung engine call hangs the caller
- Vocabulary-boosting failures never fail transcribe()
- A decode failure caused by a missing tokenizer is retried exactly once
  with boosting disabled; every other failure propagates
- close() is idempotent; operations after close() raise InvalidPayloadError
"""

from __future__ import annotations

import asyncio
import logging
import threading
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

from speech_bridge import config as settings
from speech_bridge.bridge.errors import InvalidConfigError, InvalidPayloadError
from speech_bridge.bridge.models import BridgeConfig, DiarizeOptions, TranscribeOptions
from speech_bridge.bridge.paths import existing_file, validate_config
from speech_bridge.core.assembler import build_transcript
from speech_bridge.core.diarization import build_diarization
from speech_bridge.core.ir import Diarization, EngineTranscription, Transcript
from speech_bridge.core.vocabulary import VocabularyBooster
from speech_bridge.engine.base import EngineFactory, SpeechEngine, maybe_await
from speech_bridge.engine.loader import resolve_engine_factory

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TOKENIZER_MISSING_MARKERS = (
    "tokenizernotfound",
    "tokenizer.json not found",
    "missing required file 'tokenizer.json'",
)


async def _drive(operation: Callable[[], Awaitable[T]]) -> T:
    return await operation()


class EngineLoop:
    """An event loop running on its own thread for the lifetime of a session.

    run() works whether or not the calling thread already runs a loop.
    Exceptions re-raise in the caller.
    """

    def __init__(self, name: str = "speech-bridge-engine") -> None:
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, name=name, daemon=True)
        self._thread.start()

    @property
    def closed(self) -> bool:
        return self._loop.is_closed()

    def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        if self._loop.is_closed():
            raise RuntimeError("engine loop is closed")
        future = asyncio.run_coroutine_threadsafe(_drive(operation), self._loop)
        return future.result()

    def close(self) -> None:
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join()
        self._loop.close()


def is_tokenizer_missing_error(error: BaseException) -> bool:
    message = f"{type(error).__name__}: {error}".lower()
    return any(marker in message for marker in _TOKENIZER_MISSING_MARKERS)


def _check_schema_version(version: int) -> None:
    if version != settings.SCHEMA_VERSION:
        raise InvalidPayloadError(
            f"schema_version must be {settings.SCHEMA_VERSION}, got {version}"
        )


class Session:
    """A validated configuration bound to one initialized engine.

    WHY: The boundary hands out one opaque handle per Session. Everything
    the handle owns (engine, auxiliary model cache, lock) lives here so
    destroying the handle releases it all.

    HOW: The constructor validates the config, builds the engine from the
    factory, and initializes it on a fresh EngineLoop. transcribe() and
    diarize() are synchronous and thread-safe.

    RULES:
    - Construction failures raise BridgeError subclasses (or the engine's
      own exception) and leave no engine running
    - Usable as a context manager; exit closes the session
    """

    def __init__(
        self,
        config: BridgeConfig,
        engine_factory: Optional[EngineFactory] = None,
    ) -> None:
        validate_config(config)
        self.config = config
        self._lock = threading.Lock()
        self._closed = False

        factory = engine_factory or resolve_engine_factory()
        self._engine: SpeechEngine = factory(config)
        self._loop = EngineLoop()
        try:
            self._loop.run(lambda: maybe_await(self._engine.initialize()))
        except BaseException:
            try:
                self._engine.close()
            finally:
                self._loop.close()
            raise

        self._booster = VocabularyBooster(self._engine)
        logger.info(
            "Session ready: engine=%s asr_model_dir=%s diarization=%s",
            self._engine.name,
            config.asr_model_dir,
            "on" if config.diarization_model_dir else "off",
        )

    @property
    def engine(self) -> SpeechEngine:
        return self._engine

    @property
    def booster(self) -> VocabularyBooster:
        return self._booster

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> Session:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transcription
    # ------------------------------------------------------------------

    def transcribe(self, path: str, options: TranscribeOptions) -> Transcript:
        _check_schema_version(options.schema_version)
        audio = existing_file(path, "wav")

        logger.info(
            "transcribe start wav=%s vocab_terms=%d timestamps=%s language_hint=%s",
            audio.name,
            len(options.vocabulary),
            options.timestamps,
            options.language_hint,
        )

        with self._lock:
            self._ensure_open()
            return self._loop.run(lambda: self._transcribe_locked(audio, options))

    async def _transcribe_locked(self, audio: Path, options: TranscribeOptions) -> Transcript:
        await self._booster.configure(options.vocabulary)

        try:
            result: EngineTranscription = await maybe_await(self._engine.transcribe(audio))
        except Exception as exc:
            if not is_tokenizer_missing_error(exc):
                raise
            logger.warning(
                "Tokenizer unavailable during decode; retrying without vocabulary boosting: %s",
                exc,
            )
            self._booster.disable()
            result = await maybe_await(self._engine.transcribe(audio))

        logger.info(
            "transcribe result text_len=%d token_timings=%d",
            len(result.text),
            len(result.token_timings or []),
        )
        return build_transcript(result, self._engine.name, options.timestamps)

    # ------------------------------------------------------------------
    # Diarization
    # ------------------------------------------------------------------

    def diarize(self, path: str, options: DiarizeOptions) -> Diarization:
        _check_schema_version(options.schema_version)
        audio = existing_file(path, "wav")

        if not self.config.diarization_model_dir:
            raise InvalidConfigError("diarization_model_dir is required for diarization")
        if options.speaker_count is not None and options.speaker_count <= 0:
            raise InvalidPayloadError("speaker_count must be greater than zero")

        logger.info("diarize start wav=%s speaker_count=%s", audio.name, options.speaker_count)

        with self._lock:
            self._ensure_open()
            spans = self._loop.run(
                lambda: maybe_await(self._engine.diarize(audio, options.speaker_count))
            )

        diarization = build_diarization(spans)
        logger.info("diarize result raw_spans=%d turns=%d", len(spans), len(diarization.turns))
        return diarization

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            try:
                self._engine.close()
            finally:
                self._loop.close()
        logger.info("Session closed: engine=%s", self._engine.name)

    def _ensure_open(self) -> None:
        if self._closed:
            raise InvalidPayloadError("session is closed")
