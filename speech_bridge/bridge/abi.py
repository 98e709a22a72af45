"""Boundary functions exposed to the host: handles, requests, buffers.

WHY: The host sits in another language and cannot hold Python objects,
catch Python exceptions, or free Python memory. It gets opaque integer
handles for sessions and raw (pointer, length) pairs for responses, and
every failure after create() comes back as an error envelope.

HOW: Sessions live in a handle table keyed by a monotonically increasing
int. Response bytes are copied into ctypes buffers that stay alive in a
buffer table, keyed by address, until the host calls free_buffer().
Both tables are guarded by module-level locks.

RULES:
- create() returns None on any failure; never raises
- transcribe()/diarize() always return a buffer; never raise Exception
- Check order: handle → path → options bytes → decode → execute
- Every returned buffer must be released exactly once via free_buffer()
- free_buffer(0, n) and free_buffer(p, 0) are no-ops
"""

from __future__ import annotations

import ctypes
import itertools
import logging
import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional, Tuple, Union

from speech_bridge.bridge.errors import InvalidPayloadError, to_bridge_error
from speech_bridge.bridge.serialization import (
    decode_config,
    decode_diarize_options,
    decode_transcribe_options,
    encode_error,
    encode_success,
)
from speech_bridge.bridge.session import Session
from speech_bridge.engine.base import EngineFactory

logger = logging.getLogger(__name__)

Buffer = Tuple[int, int]
PathArg = Union[str, bytes, None]

_sessions: Dict[int, Session] = {}
_sessions_lock = threading.Lock()
_handle_counter = itertools.count(1)

_buffers: Dict[int, ctypes.Array] = {}
_buffers_lock = threading.Lock()


# ---------------------------------------------------------------------------
# Session lifecycle
# ---------------------------------------------------------------------------


def create(config_bytes: Optional[bytes], engine_factory: Optional[EngineFactory] = None) -> Optional[int]:
    """Create a session from a JSON create request and return its handle."""
    if not config_bytes:
        logger.error("create: config payload is empty")
        return None

    try:
        config = decode_config(config_bytes)
        session = Session(config, engine_factory)
    except Exception:
        logger.exception("create: session creation failed")
        return None

    with _sessions_lock:
        handle = next(_handle_counter)
        _sessions[handle] = session
    logger.info("create: handle=%d", handle)
    return handle


def destroy(handle: Optional[int]) -> None:
    if handle is None:
        return

    with _sessions_lock:
        session = _sessions.pop(handle, None)
    if session is None:
        logger.warning("destroy: unknown handle %s", handle)
        return

    session.close()
    logger.info("destroy: handle=%d", handle)


@contextmanager
def open_session(
    config_bytes: Optional[bytes],
    engine_factory: Optional[EngineFactory] = None,
) -> Iterator[int]:
    """Scoped handle: created on entry, always destroyed on exit."""
    handle = create(config_bytes, engine_factory)
    if handle is None:
        raise RuntimeError("speech bridge session creation failed")
    try:
        yield handle
    finally:
        destroy(handle)


def active_handles() -> int:
    with _sessions_lock:
        return len(_sessions)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


def transcribe(handle: Optional[int], path: PathArg, options_bytes: Optional[bytes]) -> Buffer:
    return _respond(
        handle,
        path,
        options_bytes,
        "transcribe",
        lambda session, wav, data: session.transcribe(wav, decode_transcribe_options(data)),
    )


def diarize(handle: Optional[int], path: PathArg, options_bytes: Optional[bytes]) -> Buffer:
    return _respond(
        handle,
        path,
        options_bytes,
        "diarize",
        lambda session, wav, data: session.diarize(wav, decode_diarize_options(data)),
    )


def _respond(
    handle: Optional[int],
    path: PathArg,
    options_bytes: Optional[bytes],
    operation: str,
    run: Callable[[Session, str, bytes], object],
) -> Buffer:
    try:
        session = _lookup(handle)
        wav = _decode_path(path)
        if not options_bytes:
            raise InvalidPayloadError(f"{operation} options payload is empty")
        payload = encode_success(run(session, wav, options_bytes))
    except Exception as exc:
        error = to_bridge_error(exc)
        logger.warning("%s failed: %s: %s", operation, error.code, error.message)
        payload = encode_error(error)
    return _allocate(payload)


def _lookup(handle: Optional[int]) -> Session:
    if handle is None:
        raise InvalidPayloadError("bridge handle is null")
    with _sessions_lock:
        session = _sessions.get(handle)
    if session is None:
        raise InvalidPayloadError(f"unknown bridge handle: {handle}")
    return session


def _decode_path(path: PathArg) -> str:
    if path is None:
        raise InvalidPayloadError("wav path is null")
    if isinstance(path, bytes):
        try:
            return path.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidPayloadError(f"wav path is not valid UTF-8: {exc}") from exc
    return path


# ---------------------------------------------------------------------------
# Buffers
# ---------------------------------------------------------------------------


def _allocate(data: bytes) -> Buffer:
    buffer = ctypes.create_string_buffer(data, len(data))
    address = ctypes.addressof(buffer)
    with _buffers_lock:
        _buffers[address] = buffer
    return address, len(data)


def read_buffer(ptr: int, length: int) -> bytes:
    """Copy the contents of a live response buffer."""
    if not ptr or length <= 0:
        return b""
    with _buffers_lock:
        buffer = _buffers.get(ptr)
    if buffer is None:
        raise ValueError(f"unknown response buffer: {ptr:#x}")
    if length > len(buffer):
        raise ValueError(f"length {length} exceeds buffer size {len(buffer)}")
    return ctypes.string_at(ptr, length)


def free_buffer(ptr: int, length: int) -> None:
    if not ptr or length <= 0:
        return
    with _buffers_lock:
        buffer = _buffers.pop(ptr, None)
    if buffer is None:
        logger.warning("free_buffer: unknown buffer %#x", ptr)


def live_buffers() -> int:
    with _buffers_lock:
        return len(_buffers)
