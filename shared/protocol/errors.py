from __future__ import annotations

from enum import IntEnum


class StatusCode(IntEnum):
    """Coarse status attached to every protocol failure."""

    BAD_REQUEST = 400
    GONE = 410
    INTERNAL_ERROR = 500


class ExitCode(IntEnum):
    """Process exit statuses, one per fatal failure category."""

    OK = 0
    BAD_ARG_COUNT = 1
    MISSING_KEY = 2
    INVALID_PORT = 3
    UNKNOWN_KEY = 4
    UNRESOLVABLE_HOST = 5
    BAD_ENV_CONFIG = 6
    BIND_FAILED = 10
    SERVER_FAILED = 11
    CONNECT_FAILED = 20
    SESSION_FAILED = 21


class ProtocolError(Exception):
    """Structured protocol exception carrying status + message."""

    def __init__(self, status: StatusCode, message: str = "") -> None:
        self.status = status
        self.message = message
        super().__init__(f"{status.name} ({int(status)}): {message}")


class ConnectionEnded(ProtocolError):
    """Peer closed the stream, possibly in the middle of a frame."""

    def __init__(self, message: str = "connection closed by peer") -> None:
        super().__init__(StatusCode.GONE, message=message)


class IoFault(ProtocolError):
    """Unexpected transport failure while reading or writing a frame."""

    def __init__(self, message: str = "") -> None:
        super().__init__(StatusCode.INTERNAL_ERROR, message=message)


__all__ = ["StatusCode", "ExitCode", "ProtocolError", "ConnectionEnded", "IoFault"]
