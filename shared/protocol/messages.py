from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .constants import INT32_MAX, INT32_MIN, INT64_MAX, INT64_MIN
from .errors import ProtocolError, StatusCode

_INTEGER_LINE = re.compile(r"[+-]?\d+")  # Unicode decimal digits included


class FibRequest(BaseModel):
    """Client -> server: the requested Fibonacci index."""

    model_config = ConfigDict(frozen=True, strict=True)

    n: int = Field(..., ge=INT32_MIN, le=INT32_MAX, description="Requested index N (int32)")

    @classmethod
    def from_value(cls, n: int) -> "FibRequest":
        try:
            return cls(n=n)
        except ValidationError as exc:
            raise ProtocolError(StatusCode.BAD_REQUEST, message=f"Request out of int32 range: {n}") from exc

    @classmethod
    def parse_line(cls, line: str) -> "FibRequest":
        """Parse one line of console input; whitespace and other notations are rejected."""
        if not _INTEGER_LINE.fullmatch(line):
            raise ProtocolError(StatusCode.BAD_REQUEST, message=f"Not an integer: {line!r}")
        return cls.from_value(int(line))


class FibResponse(BaseModel):
    """Server -> client: fib(N), or -1 when N was negative."""

    model_config = ConfigDict(frozen=True, strict=True)

    value: int = Field(..., ge=INT64_MIN, le=INT64_MAX, description="fib(N) wrapped to int64")

    @classmethod
    def from_value(cls, value: int) -> "FibResponse":
        try:
            return cls(value=value)
        except ValidationError as exc:
            raise ProtocolError(StatusCode.BAD_REQUEST, message=f"Response out of int64 range: {value}") from exc


__all__ = ["FibRequest", "FibResponse"]
