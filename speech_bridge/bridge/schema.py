"""JSON Schema for the wire envelope.

WHY: The host parses envelopes in another language with no access to
the pydantic models. The bundled schema is the shared contract; every
envelope is checked against it before it leaves the process.

HOW: envelope.schema.json ships inside the package. It is loaded once
and cached at module level.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema

_SCHEMA_PATH = Path(__file__).resolve().parent / "envelope.schema.json"

_CACHED_SCHEMA: Optional[Dict[str, Any]] = None


def get_schema() -> Dict[str, Any]:
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH, encoding="utf-8") as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


def validate_envelope(document: Dict[str, Any]) -> None:
    """Raise jsonschema.ValidationError if document is not a valid envelope."""
    jsonschema.validate(instance=document, schema=get_schema())
