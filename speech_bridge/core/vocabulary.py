"""Custom-vocabulary normalization and best-effort boosting coordination.

WHY: Hosts pass a list of domain terms (names, jargon) with every
transcribe request. Boosting them needs auxiliary models and a tokenizer
that may be missing, slow to load, or broken. The request must succeed
either way, and repeated requests with the same terms must not reload
anything.

HOW: normalize_terms canonicalizes the list. VocabularyBooster keeps,
per session, the last successfully applied term list plus the cached
auxiliary models and tokenizer. configure() is a no-op for an unchanged
list, rebuilds otherwise, and turns every failure into "boosting off".

RULES:
- Terms: trimmed, blanks dropped, de-duplicated case-insensitively,
  first-seen casing and original order preserved
- Empty term list → boosting disabled and cache cleared
- Unchanged term list with cached artifacts → no-op
- Any failure → boosting disabled and cache cleared; configure() and
  disable() never raise
- An engine that exposes a backend but cannot accept terms is treated as
  having no backend
- Only mutated while the owning session's lock is held
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional

import httpx

from speech_bridge import config
from speech_bridge.bridge.errors import ModelNotFoundError
from speech_bridge.core.ir import VocabularyTerm
from speech_bridge.engine.assets import (
    download_tokenizer_files,
    has_tokenizer_files,
    install_tokenizer_files,
)
from speech_bridge.engine.base import SpeechEngine, Tokenizer, VocabularyBackend, maybe_await

logger = logging.getLogger(__name__)

TERM_WEIGHT = 10.0


def normalize_terms(terms: Iterable[str]) -> List[str]:
    seen = set()
    output: List[str] = []
    for term in terms:
        trimmed = term.strip()
        if not trimmed:
            continue
        key = trimmed.lower()
        if key not in seen:
            seen.add(key)
            output.append(trimmed)
    return output


def tokenize_terms(terms: Iterable[str], tokenizer: Tokenizer) -> List[VocabularyTerm]:
    """Encode each term, skipping terms the tokenizer cannot represent."""
    tokenized: List[VocabularyTerm] = []
    for term in terms:
        token_ids = list(tokenizer.encode(term))
        if not token_ids:
            logger.info("Skipping un-tokenizable vocabulary term: %s", term)
            continue
        tokenized.append(VocabularyTerm(text=term, ctc_token_ids=token_ids, weight=TERM_WEIGHT))
    return tokenized


class VocabularyBooster:
    """Per-session vocabulary-boosting state.

    WHY: Loading auxiliary models is expensive and the host usually sends
    the same vocabulary with every request. Caching per session keeps
    repeat requests cheap while distinct sessions stay independent.

    HOW: Wraps the engine's optional VocabularyBackend. configure() walks
    the stages (assets → models → tokenizer → terms → engine) and records
    the applied term list only after the engine accepted it.

    RULES:
    - configured_terms is non-empty only while boosting is active
    - The owning Session serializes every call
    """

    def __init__(
        self,
        engine: SpeechEngine,
        download: Optional[bool] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._engine = engine
        self._backend: Optional[VocabularyBackend] = engine.vocabulary_backend()
        if self._backend is not None and not engine.supports_vocabulary_boosting:
            logger.info("%s cannot accept boosted terms; ignoring its vocabulary backend", engine.name)
            self._backend = None
        self._download = config.TOKENIZER_DOWNLOAD if download is None else download
        self._base_url = base_url or config.TOKENIZER_BASE_URL
        self._transport = transport

        self.configured_terms: List[str] = []
        self._models: Any = None
        self._tokenizer: Optional[Tokenizer] = None

    @property
    def active(self) -> bool:
        return bool(self.configured_terms)

    def disable(self) -> None:
        """Turn boosting off in the engine and drop all cached state.

        Never raises: an engine that fails to switch boosting off is logged
        and the cache is still cleared.
        """
        try:
            self._engine.disable_vocabulary_boosting()
        except Exception:
            logger.warning("Engine failed to disable vocabulary boosting", exc_info=True)
        finally:
            self.configured_terms = []
            self._models = None
            self._tokenizer = None

    async def configure(self, terms: Iterable[str]) -> None:
        normalized = normalize_terms(terms)
        if not normalized:
            self.disable()
            return

        if (
            normalized == self.configured_terms
            and self._models is not None
            and self._tokenizer is not None
        ):
            return

        try:
            await self._configure(normalized)
        except Exception:
            logger.warning("Vocabulary boosting unavailable; continuing without it", exc_info=True)
            self.disable()

    async def _configure(self, terms: List[str]) -> None:
        backend = self._backend
        model_dir = backend.model_dir if backend is not None else None
        if backend is None or model_dir is None:
            # No auxiliary models: plain ASR only
            logger.info("Auxiliary vocabulary models not available; boosting disabled")
            self.disable()
            return

        tokenizer_dir = Path(backend.tokenizer_dir)
        if not await self._ensure_tokenizer_files(Path(model_dir), tokenizer_dir):
            logger.warning("Tokenizer files missing in %s; boosting disabled", tokenizer_dir)
            self.disable()
            return

        if self._models is None:
            logger.info("Loading auxiliary vocabulary models from %s", model_dir)
            self._models = await maybe_await(backend.load_models())
        if self._tokenizer is None:
            self._tokenizer = await maybe_await(backend.load_tokenizer(tokenizer_dir))

        vocabulary = tokenize_terms(terms, self._tokenizer)
        if not vocabulary:
            logger.warning("Vocabulary terms produced no tokens; boosting disabled")
            self.disable()
            return

        await maybe_await(self._engine.configure_vocabulary_boosting(vocabulary, self._models))
        self.configured_terms = terms
        logger.info("Vocabulary boosting configured with %d terms", len(vocabulary))

    async def _ensure_tokenizer_files(self, model_dir: Path, tokenizer_dir: Path) -> bool:
        if install_tokenizer_files(model_dir, tokenizer_dir):
            return True
        if not self._download:
            return False

        try:
            await download_tokenizer_files(tokenizer_dir, self._base_url, transport=self._transport)
        except (ModelNotFoundError, OSError) as exc:
            logger.warning("Tokenizer download failed: %s", exc)
        return has_tokenizer_files(tokenizer_dir)
