from __future__ import annotations

import asyncio
import logging
from typing import Optional

from shared.protocol import framing
from shared.protocol.errors import ProtocolError, StatusCode

logger = logging.getLogger(__name__)


class NetworkError(ProtocolError):
    """Network level error surfaced to higher layers."""

    pass


class FibonacciClient:
    """Single TCP connection issuing one request at a time.

    There is no reconnect: once the connection is lost every further request fails.
    """

    def __init__(self, host: str, port: int) -> None:
        self.host = host
        self.port = port
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None

    @property
    def connected(self) -> bool:
        return self.writer is not None and not self.writer.is_closing()

    async def connect(self) -> None:
        if self.connected:
            return
        try:
            self.reader, self.writer = await asyncio.open_connection(self.host, self.port)
        except OSError as exc:
            raise NetworkError(StatusCode.INTERNAL_ERROR, message=f"Cannot connect to {self.host}:{self.port}: {exc}") from exc
        logger.info("Connected to %s:%s", self.host, self.port)

    async def request(self, n: int) -> int:
        """Send index ``n`` and wait for the matching fib(n)."""
        if not self.connected:
            raise NetworkError(StatusCode.INTERNAL_ERROR, message="Not connected")
        assert self.reader is not None and self.writer is not None
        await framing.write_request(self.writer, n)
        value = await framing.read_response(self.reader)
        logger.debug("fib(%s) = %s", n, value)
        return value

    async def close(self) -> None:
        if self.writer is None:
            return
        writer, self.writer, self.reader = self.writer, None, None
        try:
            writer.close()
            await writer.wait_closed()
        except (ConnectionError, OSError) as exc:
            logger.debug("Error during close: %s", exc)
        logger.info("Network client closed")
