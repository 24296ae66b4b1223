"""Protocol-wide constants shared by client and server."""

BYTE_ORDER = "big"
REQUEST_SIZE = 4  # int32, requested index N
RESPONSE_SIZE = 8  # int64, fib(N)
INVALID_INDEX = -1  # response sentinel for N < 0

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

__all__ = [
    "BYTE_ORDER",
    "REQUEST_SIZE",
    "RESPONSE_SIZE",
    "INVALID_INDEX",
    "INT32_MIN",
    "INT32_MAX",
    "INT64_MIN",
    "INT64_MAX",
]
