"""Command line resolver shared by both roles.

Usage::

    python -m shared.cli --server --host localhost --port 12345
    python -m shared.cli --client --host localhost --port 12345

All configuration errors are reported before any socket is opened; each failure
category exits with its own status (see ``ExitCode``).
"""

from __future__ import annotations

import asyncio
import re
import socket
import sys
from enum import Enum
from typing import Annotated, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from shared.protocol.errors import ExitCode

HOST_KEY = "--host"
PORT_KEY = "--port"
SERVER_FLAG = "--server"
CLIENT_FLAG = "--client"
ARG_COUNT = 5

_PORT_TEXT = re.compile(r"[+-]?\d+")
_PORT = TypeAdapter(Annotated[int, Field(ge=0, le=65535)])


class Role(str, Enum):
    SERVER = "server"
    CLIENT = "client"


class ConfigError(Exception):
    """Raised when the command line cannot be turned into an endpoint."""

    def __init__(self, exit_code: ExitCode, message: str) -> None:
        self.exit_code = exit_code
        self.message = message
        super().__init__(message)


class ConnectionEndpoint(BaseModel):
    """Resolved address plus the role this process plays."""

    model_config = ConfigDict(frozen=True)

    host: str
    port: int = Field(..., ge=0, le=65535)
    role: Role
    address: str = Field(..., description="Numeric address the host resolved to")

    @property
    def is_server(self) -> bool:
        return self.role is Role.SERVER

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


def _parse_port(text: str) -> int:
    if not _PORT_TEXT.fullmatch(text):
        raise ConfigError(ExitCode.INVALID_PORT, f"invalid port: {text}")
    try:
        return _PORT.validate_python(int(text))
    except ValidationError as exc:
        raise ConfigError(ExitCode.INVALID_PORT, f"invalid port: {text}") from exc


def _resolve_host(host: str) -> str:
    try:
        infos = socket.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as exc:
        raise ConfigError(ExitCode.UNRESOLVABLE_HOST, f"unresolvable host: {host} ({exc})") from exc
    return infos[0][4][0]


def resolve_endpoint(argv: Sequence[str]) -> ConnectionEndpoint:
    args = list(argv)
    if len(args) != ARG_COUNT:
        raise ConfigError(ExitCode.BAD_ARG_COUNT, f"invalid args count: {len(args)} != {ARG_COUNT}")
    if HOST_KEY not in args or PORT_KEY not in args:
        raise ConfigError(ExitCode.MISSING_KEY, f"args doesn't contain some of key: {PORT_KEY} or {HOST_KEY}")

    values: Dict[str, str] = {}
    roles: List[Role] = []
    i = 0
    while i < len(args):
        key = args[i]
        if key in (HOST_KEY, PORT_KEY):
            if i + 1 >= len(args):
                raise ConfigError(ExitCode.MISSING_KEY, f"missing value for {key}")
            values[key] = args[i + 1]
            i += 2
        elif key == SERVER_FLAG:
            roles.append(Role.SERVER)
            i += 1
        elif key == CLIENT_FLAG:
            roles.append(Role.CLIENT)
            i += 1
        else:
            raise ConfigError(ExitCode.UNKNOWN_KEY, f"unknown key: {key}")

    if len(roles) != 1:
        raise ConfigError(ExitCode.MISSING_KEY, f"exactly one of {SERVER_FLAG} or {CLIENT_FLAG} is required")

    port = _parse_port(values[PORT_KEY])
    host = values[HOST_KEY]
    return ConnectionEndpoint(host=host, port=port, role=roles[0], address=_resolve_host(host))


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    try:
        endpoint = resolve_endpoint(args)
    except ConfigError as exc:
        print(exc.message, file=sys.stderr)
        return int(exc.exit_code)

    print(f"connect info: {endpoint}")
    if endpoint.is_server:
        from server.main import run_server

        return int(asyncio.run(run_server(endpoint)))

    from client.main import run_client

    return int(asyncio.run(run_client(endpoint)))


if __name__ == "__main__":
    sys.exit(main())
