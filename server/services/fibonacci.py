from __future__ import annotations

from shared.protocol.constants import INVALID_INDEX

_MASK64 = (1 << 64) - 1
_SIGN64 = 1 << 63


def _wrap_int64(value: int) -> int:
    value &= _MASK64
    return value - (1 << 64) if value & _SIGN64 else value


def fib(n: int) -> int:
    """Return fib(n) as a signed 64-bit value.

    Negative indexes yield ``INVALID_INDEX`` (-1). From fib(93) onward the true
    value no longer fits in 64 bits and the result wraps around silently, the same
    way the fixed-width integers on the wire would. Wrapped values are part of the
    protocol and are not corrected here.
    """
    if n < 0:
        return INVALID_INDEX
    if n < 2:
        return n
    prev, cur = 0, 1
    for _ in range(2, n + 1):
        prev, cur = cur, _wrap_int64(prev + cur)
    return cur


__all__ = ["fib"]
