"""Error taxonomy for the cross-boundary contract.

WHY: The host cannot catch Python exceptions. Every failure must reach it
as a stable, machine-readable code plus a human-readable message inside
an error envelope.

HOW: BridgeError is the root; each subclass pins one wire code.
to_bridge_error() maps anything else to internal_failure carrying the
underlying fault's description.

RULES:
- Codes are part of the wire contract; never rename them
- message is always a non-empty string
"""

from __future__ import annotations


class BridgeError(Exception):
    """Base class for failures that cross the boundary as an error envelope.

    RULES:
    - code: snake_case wire identifier, fixed per subclass
    - message: human-readable description
    """

    code = "internal_failure"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidPayloadError(BridgeError):
    """Malformed or undecodable request bytes, or null/empty required fields."""

    code = "invalid_payload"


class InvalidConfigError(BridgeError):
    """Schema mismatch or empty model path in the create configuration."""

    code = "invalid_config"


class UnsupportedPlatformError(BridgeError):
    """Host capability level is below the supported minimum."""

    code = "unsupported_platform"


class ModelNotFoundError(BridgeError):
    """Required model, auxiliary, or input files are absent."""

    code = "model_not_found"


class EngineUnavailableError(BridgeError):
    """No speech engine is installed or configured for this process."""

    code = "engine_unavailable"


class InternalFailureError(BridgeError):
    """Anything unclassified, including unexpected engine faults."""

    code = "internal_failure"


def to_bridge_error(error: BaseException) -> BridgeError:
    """Map any exception to a BridgeError, preserving bridge errors as-is."""
    if isinstance(error, BridgeError):
        return error
    return InternalFailureError(str(error) or type(error).__name__)
