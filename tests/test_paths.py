"""Unit tests for create-config validation and input file checks.

WHY: Each validation failure maps to a distinct wire code. Hosts branch
on those codes (e.g. offering a model download on model_not_found), so
the mapping and the check order matter.
"""

import pytest

from speech_bridge.bridge.errors import (
    InvalidConfigError,
    InvalidPayloadError,
    ModelNotFoundError,
    UnsupportedPlatformError,
)
from speech_bridge.bridge.paths import existing_file, validate_config


class TestValidateConfig:
    def test_valid_config(self, bridge_config):
        validate_config(bridge_config)

    def test_schema_mismatch_checked_first(self, bridge_config):
        config = bridge_config.model_copy(update={"schema_version": 2, "runtime_platform_major": 1})
        with pytest.raises(InvalidConfigError, match="schema_version must be 1, got 2"):
            validate_config(config)

    def test_old_platform(self, bridge_config):
        config = bridge_config.model_copy(update={"runtime_platform_major": 13})
        with pytest.raises(UnsupportedPlatformError, match="14"):
            validate_config(config)

    def test_blank_asr_dir(self, bridge_config):
        config = bridge_config.model_copy(update={"asr_model_dir": "   "})
        with pytest.raises(InvalidConfigError):
            validate_config(config)

    def test_missing_asr_dir(self, bridge_config, tmp_path):
        config = bridge_config.model_copy(update={"asr_model_dir": str(tmp_path / "nope")})
        with pytest.raises(ModelNotFoundError, match="ASR"):
            validate_config(config)

    def test_asr_dir_is_a_file(self, bridge_config, wav_file):
        config = bridge_config.model_copy(update={"asr_model_dir": str(wav_file)})
        with pytest.raises(ModelNotFoundError):
            validate_config(config)

    def test_missing_diarization_dir(self, bridge_config, tmp_path):
        config = bridge_config.model_copy(update={"diarization_model_dir": str(tmp_path / "nope")})
        with pytest.raises(ModelNotFoundError, match="diarization"):
            validate_config(config)

    @pytest.mark.parametrize("value", [None, ""])
    def test_diarization_dir_is_optional(self, bridge_config, value):
        validate_config(bridge_config.model_copy(update={"diarization_model_dir": value}))


class TestExistingFile:
    def test_resolves_existing_file(self, wav_file):
        assert existing_file(str(wav_file)) == wav_file.resolve()

    def test_blank_path(self):
        with pytest.raises(InvalidPayloadError, match="wav path is empty"):
            existing_file("  ")

    def test_missing_file(self, tmp_path):
        with pytest.raises(ModelNotFoundError, match="wav file not found"):
            existing_file(str(tmp_path / "missing.wav"))

    def test_directory_is_not_a_file(self, tmp_path):
        with pytest.raises(ModelNotFoundError):
            existing_file(str(tmp_path))
