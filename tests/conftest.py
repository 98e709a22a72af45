"""Shared test fixtures for the speech_bridge test suite.

WHY: Most modules need the same collaborators: a scripted engine that
records what it was asked to do, an optional vocabulary backend, model
directories that pass validation, and a WAV file that exists on disk.
Centralizing them keeps every test module focused on one rule.

HOW: FakeEngine implements SpeechEngine with async methods and tracks
how many operations run at once. FakeVocabularyBackend counts model and
tokenizer loads. Fixtures build directories under tmp_path.

RULES:
- No test touches the network: tokenizer downloads are switched off for
  every test unless a test passes download=True with a MockTransport
- Token data mirrors a SentencePiece-style decode of "Hi, I'm Garen."
"""

import asyncio
import threading
from pathlib import Path
from typing import Any, List, Optional

import pytest

from speech_bridge import config
from speech_bridge.bridge.models import BridgeConfig
from speech_bridge.core.ir import EngineTranscription, RawSpeakerSpan, TokenTiming, VocabularyTerm
from speech_bridge.engine.base import SpeechEngine, VocabularyBackend


# ---------------------------------------------------------------------------
# Sample engine output
# ---------------------------------------------------------------------------

SAMPLE_TIMINGS: List[TokenTiming] = [
    TokenTiming("▁Hi", 0.00, 0.08),
    TokenTiming(",",   0.08, 0.10),
    TokenTiming("▁I",  0.12, 0.18),
    TokenTiming("'",   0.18, 0.20),
    TokenTiming("m",   0.20, 0.24),
    TokenTiming("▁G",  0.26, 0.32),
    TokenTiming("aren", 0.32, 0.50),
    TokenTiming(".",   0.50, 0.52),
]

SAMPLE_SPANS: List[RawSpeakerSpan] = [
    RawSpeakerSpan(2.0, 4.0, "S2"),
    RawSpeakerSpan(0.0, 2.5, "S1"),
    RawSpeakerSpan(4.0, 4.0, "S1"),
]


class FakeTokenizer:
    """Maps each non-space character to a small positive id."""

    def __init__(self, untokenizable: Optional[List[str]] = None):
        self.untokenizable = set(untokenizable or [])

    def encode(self, text: str) -> List[int]:
        if text in self.untokenizable:
            return []
        return [ord(c) % 97 + 1 for c in text if not c.isspace()]


class FakeVocabularyBackend(VocabularyBackend):
    """Auxiliary-model backend that records loads instead of reading models."""

    def __init__(
        self,
        model_dir: Optional[Path],
        tokenizer_dir: Path,
        tokenizer: Optional[FakeTokenizer] = None,
        fail_models: bool = False,
    ):
        self._model_dir = model_dir
        self._tokenizer_dir = tokenizer_dir
        self.tokenizer = tokenizer or FakeTokenizer()
        self.fail_models = fail_models
        self.model_loads = 0
        self.tokenizer_loads = 0

    @property
    def model_dir(self) -> Optional[Path]:
        return self._model_dir

    @property
    def tokenizer_dir(self) -> Path:
        return self._tokenizer_dir

    async def load_models(self) -> Any:
        self.model_loads += 1
        if self.fail_models:
            raise RuntimeError("auxiliary model load failed")
        return "aux-models"

    def load_tokenizer(self, directory: Path) -> FakeTokenizer:
        self.tokenizer_loads += 1
        return self.tokenizer


class FakeEngine(SpeechEngine):
    """Scripted SpeechEngine.

    transcribe_errors are raised (in order) by the next transcribe calls
    before the scripted result is returned. delay_s keeps each operation
    in flight long enough to observe overlap. loops records the event loop
    each async call ran on.
    """

    def __init__(
        self,
        result: Optional[EngineTranscription] = None,
        spans: Optional[List[RawSpeakerSpan]] = None,
        backend: Optional[VocabularyBackend] = None,
        transcribe_errors: Optional[List[Exception]] = None,
        initialize_error: Optional[Exception] = None,
        delay_s: float = 0.0,
        engine_name: str = "fake",
    ):
        self.result = result or EngineTranscription(
            text="Hi, I'm Garen.", duration_s=0.6, token_timings=list(SAMPLE_TIMINGS)
        )
        self.spans = list(SAMPLE_SPANS) if spans is None else spans
        self.backend = backend
        self.transcribe_errors = list(transcribe_errors or [])
        self.initialize_error = initialize_error
        self.delay_s = delay_s
        self._name = engine_name

        self.initialized = False
        self.closed = False
        self.transcribe_calls = 0
        self.diarize_calls: List[Optional[int]] = []
        self.boosted_terms: Optional[List[VocabularyTerm]] = None
        self.boost_models: Any = None
        self.boost_disable_calls = 0
        self.loops: List[asyncio.AbstractEventLoop] = []

        self._counter_lock = threading.Lock()
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def name(self) -> str:
        return self._name

    async def _occupy(self) -> None:
        self.loops.append(asyncio.get_running_loop())
        with self._counter_lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay_s)
        finally:
            with self._counter_lock:
                self.in_flight -= 1

    async def initialize(self) -> None:
        self.loops.append(asyncio.get_running_loop())
        if self.initialize_error is not None:
            raise self.initialize_error
        self.initialized = True

    async def transcribe(self, path: Path) -> EngineTranscription:
        self.transcribe_calls += 1
        await self._occupy()
        if self.transcribe_errors:
            raise self.transcribe_errors.pop(0)
        return self.result

    async def diarize(self, path: Path, speaker_count: Optional[int] = None) -> List[RawSpeakerSpan]:
        self.diarize_calls.append(speaker_count)
        await self._occupy()
        return self.spans

    def vocabulary_backend(self) -> Optional[VocabularyBackend]:
        return self.backend

    def configure_vocabulary_boosting(self, terms: List[VocabularyTerm], models: Any) -> None:
        self.boosted_terms = list(terms)
        self.boost_models = models

    def disable_vocabulary_boosting(self) -> None:
        self.boost_disable_calls += 1
        self.boosted_terms = None

    def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _no_tokenizer_downloads(monkeypatch):
    monkeypatch.setattr(config, "TOKENIZER_DOWNLOAD", False)


@pytest.fixture
def sample_timings():
    return list(SAMPLE_TIMINGS)


@pytest.fixture
def model_dirs(tmp_path):
    """ASR and diarization model directories that pass validation."""
    asr = tmp_path / "models" / "asr"
    diarization = tmp_path / "models" / "diarization"
    asr.mkdir(parents=True)
    diarization.mkdir(parents=True)
    return {"asr": asr, "diarization": diarization}


@pytest.fixture
def wav_file(tmp_path):
    path = tmp_path / "meeting.wav"
    path.write_bytes(b"RIFF\x24\x00\x00\x00WAVEfmt ")
    return path


@pytest.fixture
def bridge_config(model_dirs):
    return BridgeConfig(
        schema_version=1,
        asr_model_dir=str(model_dirs["asr"]),
        diarization_model_dir=str(model_dirs["diarization"]),
        runtime_platform_major=14,
    )


@pytest.fixture
def aux_model_dir(tmp_path):
    """Auxiliary model directory shipping its own tokenizer assets."""
    path = tmp_path / "models" / "ctc"
    path.mkdir(parents=True)
    (path / "tokenizer.json").write_text('{"model": {}}', encoding="utf-8")
    (path / "tokenizer_config.json").write_text("{}", encoding="utf-8")
    (path / "special_tokens_map.json").write_text("{}", encoding="utf-8")
    return path


@pytest.fixture
def vocabulary_backend(aux_model_dir, tmp_path):
    return FakeVocabularyBackend(aux_model_dir, tmp_path / "tokenizer-cache")


@pytest.fixture
def fake_engine(vocabulary_backend):
    return FakeEngine(backend=vocabulary_backend)


def make_fake_engine(config: BridgeConfig) -> FakeEngine:
    """Engine factory importable as ``conftest:make_fake_engine``."""
    return FakeEngine()
