"""Abstract engine port and vocabulary-boosting capability.

WHY: The neural engine is a black box supplied by the host environment.
The bridge only needs a narrow surface: initialize, transcribe, diarize,
and optionally accept boosted vocabulary. An abstract base class pins
that surface so sessions and tests work against any engine.

HOW: SpeechEngine is an ABC with three required operations and a
``name`` property. Vocabulary boosting is a capability object: an engine
that supports it returns a VocabularyBackend from vocabulary_backend(),
otherwise None. Engine methods may be plain functions or coroutines;
the session awaits whatever is awaitable. Every call a session makes on
its engine runs on one long-lived event loop, so loop-bound resources
(async HTTP clients, asyncio locks) created in initialize() stay usable.

To plug in an engine:
1. Subclass SpeechEngine and implement name, initialize, transcribe, diarize
2. For boosting, override vocabulary_backend() and
   configure_vocabulary_boosting() together
3. Expose a factory callable taking the BridgeConfig
4. Point SPEECH_BRIDGE_ENGINE at it as ``module:callable``
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Protocol

from speech_bridge.config import TOKENIZER_CACHE_DIR
from speech_bridge.core.ir import EngineTranscription, RawSpeakerSpan, VocabularyTerm

if TYPE_CHECKING:
    from speech_bridge.bridge.models import BridgeConfig


class Tokenizer(Protocol):
    """Auxiliary tokenizer used to turn vocabulary terms into token ids."""

    def encode(self, text: str) -> List[int]:
        ...


class VocabularyBackend(ABC):
    """Auxiliary models and tokenizer an engine uses for vocabulary boosting.

    RULES:
    - model_dir is None when the auxiliary models were not found
    - tokenizer_dir is where tokenizer assets are installed/cached
    - load_models() and load_tokenizer() may be sync or async
    """

    @property
    @abstractmethod
    def model_dir(self) -> Optional[Path]:
        """Directory holding the auxiliary (CTC) models, if present."""

    @property
    def tokenizer_dir(self) -> Path:
        return TOKENIZER_CACHE_DIR

    @abstractmethod
    def load_models(self) -> Any:
        """Load the auxiliary models from model_dir."""

    @abstractmethod
    def load_tokenizer(self, directory: Path) -> Tokenizer:
        """Load the tokenizer from its installed asset directory."""


class SpeechEngine(ABC):
    """Abstract base for a loaded ASR/diarization engine context."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Engine identifier reported in the Transcript, e.g. 'fluid'."""

    @abstractmethod
    def initialize(self) -> Any:
        """Load models and prepare for inference."""

    @abstractmethod
    def transcribe(self, path: Path) -> EngineTranscription:
        """Transcribe one audio file into text, duration and token timings."""

    @abstractmethod
    def diarize(self, path: Path, speaker_count: Optional[int] = None) -> List[RawSpeakerSpan]:
        """Return raw speaker spans for one audio file."""

    def vocabulary_backend(self) -> Optional[VocabularyBackend]:
        return None

    @property
    def supports_vocabulary_boosting(self) -> bool:
        """True when the engine overrides configure_vocabulary_boosting().

        A backend returned by an engine without this capability is ignored.
        """
        return (
            type(self).configure_vocabulary_boosting
            is not SpeechEngine.configure_vocabulary_boosting
        )

    def configure_vocabulary_boosting(self, terms: List[VocabularyTerm], models: Any) -> Any:
        raise NotImplementedError(f"{self.name} does not support vocabulary boosting")

    def disable_vocabulary_boosting(self) -> None:
        pass

    def close(self) -> None:
        pass


EngineFactory = Callable[["BridgeConfig"], SpeechEngine]


async def maybe_await(value: Any) -> Any:
    """Await value if the engine returned an awaitable, else pass it through."""
    if inspect.isawaitable(value):
        return await value
    return value
