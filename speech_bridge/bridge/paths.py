"""Validation of create configuration and request input files.

WHY: A session must refuse to start on a config it cannot honour, and a
request must refuse a path that is not a readable regular file, before
any engine work begins. Each failure maps to a specific wire code.

RULES:
- Schema mismatch → invalid_config
- runtime_platform_major below MIN_PLATFORM_MAJOR → unsupported_platform
- Blank model directory → invalid_config
- Missing model directory, or a file where a directory is expected → model_not_found
- diarization_model_dir is only checked when non-empty
- Blank input path → invalid_payload; missing or directory → model_not_found
"""

from __future__ import annotations

from pathlib import Path

from speech_bridge import config as settings
from speech_bridge.bridge.errors import (
    InvalidConfigError,
    InvalidPayloadError,
    ModelNotFoundError,
    UnsupportedPlatformError,
)
from speech_bridge.bridge.models import BridgeConfig


def validate_config(config: BridgeConfig) -> None:
    if config.schema_version != settings.SCHEMA_VERSION:
        raise InvalidConfigError(
            f"schema_version must be {settings.SCHEMA_VERSION}, got {config.schema_version}"
        )

    if config.runtime_platform_major < settings.MIN_PLATFORM_MAJOR:
        raise UnsupportedPlatformError(
            f"Speech engine requires platform {settings.MIN_PLATFORM_MAJOR}+, "
            f"got {config.runtime_platform_major}"
        )

    _validate_directory(config.asr_model_dir, "ASR")
    if config.diarization_model_dir:
        _validate_directory(config.diarization_model_dir, "diarization")


def _validate_directory(path: str, label: str) -> None:
    if not path.strip():
        raise InvalidConfigError(f"{label} model directory is empty")

    if not Path(path).is_dir():
        raise ModelNotFoundError(f"{label} model directory not found: {path}")


def existing_file(path: str, label: str = "wav") -> Path:
    """Return the resolved path of an existing regular file."""
    trimmed = path.strip()
    if not trimmed:
        raise InvalidPayloadError(f"{label} path is empty")

    resolved = Path(trimmed).expanduser().resolve()
    if not resolved.is_file():
        raise ModelNotFoundError(f"{label} file not found: {resolved}")
    return resolved
