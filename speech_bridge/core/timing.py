"""Saturating millisecond arithmetic over the unsigned 64-bit range.

WHY: Engine clocks report float seconds; the wire contract carries
unsigned 64-bit milliseconds. A naive conversion of a huge, infinite, or
negative value would wrap or raise instead of producing a usable bound.

RULES:
- Every value returned here lies in [0, UINT64_MAX]
- Rounding is half away from zero (1.5 ms -> 2 ms)
"""

from __future__ import annotations

import math

UINT64_MAX = 2**64 - 1

_MAX_MS_FLOAT = float(UINT64_MAX)


def to_ms(seconds: float) -> int:
    """Convert engine seconds to saturated, rounded milliseconds."""
    if math.isnan(seconds) or seconds <= 0:
        return 0

    raw = seconds * 1000.0
    if raw >= _MAX_MS_FLOAT:
        return UINT64_MAX
    return min(UINT64_MAX, int(math.floor(raw + 0.5)))


def saturating_sub(lhs: int, rhs: int) -> int:
    return lhs - rhs if lhs >= rhs else 0


def saturating_add(lhs: int, rhs: int) -> int:
    return min(UINT64_MAX, lhs + rhs)


def at_least_one_ms_after(start_ms: int, end_ms: int) -> int:
    """Return end_ms, or start_ms + 1 when the span would be empty."""
    if end_ms <= start_ms:
        return saturating_add(start_ms, 1)
    return end_ms
