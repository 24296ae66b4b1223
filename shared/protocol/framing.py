from __future__ import annotations

import asyncio

from .constants import BYTE_ORDER, REQUEST_SIZE, RESPONSE_SIZE
from .errors import ConnectionEnded, IoFault, ProtocolError, StatusCode
from .messages import FibRequest, FibResponse


def encode_request(n: int) -> bytes:
    """Encode index N as a 4 byte big-endian signed frame."""
    request = FibRequest.from_value(n)
    return request.n.to_bytes(REQUEST_SIZE, BYTE_ORDER, signed=True)


def decode_request(data: bytes) -> int:
    if len(data) != REQUEST_SIZE:
        raise ProtocolError(StatusCode.BAD_REQUEST, message=f"Request frame must be {REQUEST_SIZE} bytes, got {len(data)}")
    return int.from_bytes(data, BYTE_ORDER, signed=True)


def encode_response(value: int) -> bytes:
    """Encode fib(N) as an 8 byte big-endian signed frame."""
    response = FibResponse.from_value(value)
    return response.value.to_bytes(RESPONSE_SIZE, BYTE_ORDER, signed=True)


def decode_response(data: bytes) -> int:
    if len(data) != RESPONSE_SIZE:
        raise ProtocolError(
            StatusCode.BAD_REQUEST, message=f"Response frame must be {RESPONSE_SIZE} bytes, got {len(data)}"
        )
    return int.from_bytes(data, BYTE_ORDER, signed=True)


async def _read_frame(reader: asyncio.StreamReader, size: int) -> bytes:
    try:
        return await reader.readexactly(size)
    except asyncio.IncompleteReadError as exc:
        raise ConnectionEnded(f"peer closed after {len(exc.partial)} of {size} bytes") from exc
    except OSError as exc:
        raise IoFault(f"read failed: {exc}") from exc


async def _write_frame(writer: asyncio.StreamWriter, frame: bytes) -> None:
    try:
        writer.write(frame)
        await writer.drain()
    except OSError as exc:
        raise IoFault(f"write failed: {exc}") from exc


async def read_request(reader: asyncio.StreamReader) -> int:
    """Read exactly one request frame from the stream and decode it."""
    return decode_request(await _read_frame(reader, REQUEST_SIZE))


async def read_response(reader: asyncio.StreamReader) -> int:
    return decode_response(await _read_frame(reader, RESPONSE_SIZE))


async def write_request(writer: asyncio.StreamWriter, n: int) -> None:
    await _write_frame(writer, encode_request(n))


async def write_response(writer: asyncio.StreamWriter, value: int) -> None:
    await _write_frame(writer, encode_response(value))
