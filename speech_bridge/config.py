"""Configuration constants, environment overrides, and .env loading.

WHY: Centralizes the wire schema version, platform floor, engine
selection, model directories, and tokenizer-asset settings so they are
easy to find and override without touching logic.

HOW: python-dotenv loads the .env file on import. Constants are
module-level values read from os.environ with defaults. The
detect_platform_major() helper supplies the host capability value the
create request needs when the caller does not pass one.

RULES:
- SCHEMA_VERSION is fixed in code; it is part of the wire contract
- All other defaults can be overridden via environment variables
- Empty environment values are treated as unset
"""

from __future__ import annotations

import os
import platform
import re
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from the working directory (where the host or CLI is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Wire contract
# ---------------------------------------------------------------------------

SCHEMA_VERSION = 1
"""Version carried by every envelope and required on every request."""

MIN_PLATFORM_MAJOR = int(os.getenv("SPEECH_BRIDGE_MIN_PLATFORM_MAJOR", "14"))
"""Lowest runtime_platform_major accepted by create()."""

# ---------------------------------------------------------------------------
# Engine and model locations
# ---------------------------------------------------------------------------


def _env_or_none(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


ENGINE_REFERENCE = _env_or_none("SPEECH_BRIDGE_ENGINE")
"""``module:callable`` of the engine factory, e.g. ``acme_asr.bridge:make_engine``."""

ASR_MODEL_DIR = _env_or_none("SPEECH_BRIDGE_ASR_MODEL_DIR")
DIARIZATION_MODEL_DIR = _env_or_none("SPEECH_BRIDGE_DIARIZATION_MODEL_DIR")

# ---------------------------------------------------------------------------
# Vocabulary boosting assets
# ---------------------------------------------------------------------------

TOKENIZER_CACHE_DIR = Path(
    os.getenv(
        "SPEECH_BRIDGE_CACHE_DIR",
        str(Path.home() / ".cache" / "speech_bridge" / "tokenizers"),
    )
).expanduser()

TOKENIZER_BASE_URL = os.getenv(
    "SPEECH_BRIDGE_TOKENIZER_BASE_URL",
    "https://huggingface.co/FluidInference/parakeet-ctc-110m-coreml/resolve/main",
)
TOKENIZER_DOWNLOAD = os.getenv("SPEECH_BRIDGE_TOKENIZER_DOWNLOAD", "true").lower() == "true"

REQUIRED_TOKENIZER_FILES = ("tokenizer.json", "tokenizer_config.json")
OPTIONAL_TOKENIZER_FILES = ("special_tokens_map.json", "config.json")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_LEVEL = os.getenv("SPEECH_BRIDGE_LOG_LEVEL", "INFO").upper()


def detect_platform_major() -> int:
    """Return the host platform's major version number.

    WHY: The create request must declare the host capability level. The
    CLI (and Python hosts) should not have to work it out by hand.

    HOW: SPEECH_BRIDGE_PLATFORM_MAJOR wins when set. Otherwise the macOS
    product version, then the kernel release string, are parsed for a
    leading integer.

    RULES:
    - Returns 0 when nothing can be parsed (create() then rejects it)
    - An override without a leading integer also yields 0
    """
    override = _env_or_none("SPEECH_BRIDGE_PLATFORM_MAJOR")
    if override is not None:
        return _leading_int(override)

    for candidate in (platform.mac_ver()[0], platform.release()):
        major = _leading_int(candidate or "")
        if major:
            return major
    return 0


def _leading_int(value: str) -> int:
    match = re.match(r"\d+", value.strip())
    return int(match.group(0)) if match else 0
