"""Unit tests for the error taxonomy.

RULES:
- Wire codes are fixed strings; these tests pin them
"""

import pytest

from speech_bridge.bridge.errors import (
    BridgeError,
    EngineUnavailableError,
    InternalFailureError,
    InvalidConfigError,
    InvalidPayloadError,
    ModelNotFoundError,
    UnsupportedPlatformError,
    to_bridge_error,
)


@pytest.mark.parametrize(
    "error_class, code",
    [
        (InvalidPayloadError, "invalid_payload"),
        (InvalidConfigError, "invalid_config"),
        (UnsupportedPlatformError, "unsupported_platform"),
        (ModelNotFoundError, "model_not_found"),
        (EngineUnavailableError, "engine_unavailable"),
        (InternalFailureError, "internal_failure"),
    ],
)
def test_wire_codes(error_class, code):
    error = error_class("details")
    assert isinstance(error, BridgeError)
    assert error.code == code
    assert error.message == "details"
    assert str(error) == "details"


class TestToBridgeError:
    def test_bridge_errors_pass_through(self):
        error = ModelNotFoundError("gone")
        assert to_bridge_error(error) is error

    def test_other_exceptions_become_internal_failure(self):
        error = to_bridge_error(ValueError("engine state corrupted"))
        assert error.code == "internal_failure"
        assert error.message == "engine state corrupted"

    def test_empty_message_uses_type_name(self):
        assert to_bridge_error(KeyError()).message == "KeyError"
