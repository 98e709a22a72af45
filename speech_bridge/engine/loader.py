"""Resolution of the configured engine factory.

WHY: The engine is supplied by the deployment, not by this package. The
host names it once (SPEECH_BRIDGE_ENGINE) and every session is built
from it.

HOW: A ``module:attribute`` reference is imported with importlib and
checked for callability.

RULES:
- Nothing configured, import failure, missing attribute, or a
  non-callable target all raise EngineUnavailableError
"""

from __future__ import annotations

import importlib
import logging
from typing import Optional

from speech_bridge import config
from speech_bridge.bridge.errors import EngineUnavailableError
from speech_bridge.engine.base import EngineFactory

logger = logging.getLogger(__name__)


def resolve_engine_factory(reference: Optional[str] = None) -> EngineFactory:
    """Import the engine factory named by reference or SPEECH_BRIDGE_ENGINE."""
    reference = (reference or config.ENGINE_REFERENCE or "").strip()
    if not reference:
        raise EngineUnavailableError(
            "No speech engine configured. Set SPEECH_BRIDGE_ENGINE to 'module:callable'."
        )

    module_name, sep, attribute = reference.partition(":")
    if not sep or not module_name or not attribute:
        raise EngineUnavailableError(
            f"Engine reference must look like 'module:callable', got {reference!r}"
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise EngineUnavailableError(f"Engine module {module_name!r} is not installed: {exc}") from exc

    factory = getattr(module, attribute, None)
    if factory is None or not callable(factory):
        raise EngineUnavailableError(f"Engine factory {reference!r} is missing or not callable")

    logger.info("Using engine factory %s", reference)
    return factory
