"""
Shared protocol package that centralizes constants, frame models, framing helpers,
and the error taxonomy for both client and server.
"""

from .constants import INVALID_INDEX, REQUEST_SIZE, RESPONSE_SIZE
from .errors import ConnectionEnded, ExitCode, IoFault, ProtocolError, StatusCode
from .framing import (
    decode_request,
    decode_response,
    encode_request,
    encode_response,
    read_request,
    read_response,
    write_request,
    write_response,
)
from .messages import FibRequest, FibResponse

__all__ = [
    "INVALID_INDEX",
    "REQUEST_SIZE",
    "RESPONSE_SIZE",
    "ConnectionEnded",
    "ExitCode",
    "IoFault",
    "ProtocolError",
    "StatusCode",
    "encode_request",
    "decode_request",
    "encode_response",
    "decode_response",
    "read_request",
    "read_response",
    "write_request",
    "write_response",
    "FibRequest",
    "FibResponse",
]
