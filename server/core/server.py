from __future__ import annotations

import asyncio
import logging
import multiprocessing
from concurrent.futures import Executor, ProcessPoolExecutor
from typing import Optional

from .connection import ConnectionContext
from .connection_manager import ConnectionManager
from .handler import ConnectionHandler

logger = logging.getLogger(__name__)


class BindError(Exception):
    """The listening socket could not be bound; fatal at startup."""

    def __init__(self, host: str, port: int, reason: str) -> None:
        self.host = host
        self.port = port
        super().__init__(f"Cannot bind {host}:{port}: {reason}")


class AcceptLoopError(Exception):
    """The accept loop died; every handler has been stopped."""


class FibonacciServer:
    """Accepts connections and runs one independent handler task per connection.

    The number of concurrent handlers is not capped: every accepted connection
    gets its own task for as long as the peer keeps it open. Large indexes are
    computed in a process pool of ``workers`` processes (one per CPU when 0);
    requests beyond that queue for a free process while the event loop keeps
    serving everyone else.
    """

    def __init__(
        self,
        host: str,
        port: int,
        connection_manager: Optional[ConnectionManager] = None,
        backlog: int = 100,
        workers: int = 0,
        inline_limit: int = 10_000,
        executor: Optional[Executor] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.backlog = backlog
        self.workers = workers
        self.inline_limit = inline_limit
        self.connection_manager = connection_manager or ConnectionManager()
        self._executor = executor
        self._owns_executor = executor is None
        self._server: Optional[asyncio.AbstractServer] = None
        self._stopping = False
        self._stop_task: Optional[asyncio.Task] = None

    @property
    def bound_port(self) -> Optional[int]:
        if not self._server or not self._server.sockets:
            return None
        return self._server.sockets[0].getsockname()[1]

    async def start(self) -> None:
        try:
            self._server = await asyncio.start_server(
                self._handle_client, self.host, self.port, backlog=self.backlog, start_serving=False
            )
        except OSError as exc:
            raise BindError(self.host, self.port, exc.strerror or str(exc)) from exc
        if self._executor is None:
            # spawn: workers must not inherit the event loop or its threads
            self._executor = ProcessPoolExecutor(
                max_workers=self.workers or None, mp_context=multiprocessing.get_context("spawn")
            )
        logger.info("Server listening on %s:%s", self.host, self.bound_port)

    async def serve_forever(self) -> None:
        """Run the accept loop until ``stop`` is called."""
        if self._server is None:
            await self.start()
        assert self._server is not None
        try:
            await self._server.serve_forever()
        except asyncio.CancelledError:
            if not self._stopping:
                raise
        except Exception as exc:
            logger.exception("Server dead: %s", exc)
            await self.stop()
            raise AcceptLoopError(str(exc)) from exc

    async def stop(self) -> None:
        """Close the listening socket, then every open connection. No drain."""
        self.request_stop()
        await self.wait_stopped()

    def request_stop(self) -> None:
        """Schedule ``stop`` without waiting for it, e.g. from a signal handler."""
        if self._stop_task is None:
            self._stopping = True
            self._stop_task = asyncio.ensure_future(self._shutdown())

    async def wait_stopped(self) -> None:
        if self._stop_task is not None:
            await self._stop_task

    async def _shutdown(self) -> None:
        if self._server:
            self._server.close()
        await self.connection_manager.close_all()
        if self._executor is not None and self._owns_executor:
            # a computation already running in a worker is abandoned, not interrupted
            self._executor.shutdown(wait=False, cancel_futures=True)
        if self._server:
            await self._server.wait_closed()
        logger.info("Server on %s:%s stopped", self.host, self.port)

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        ctx = ConnectionContext(
            reader=reader,
            writer=writer,
            peername=str(writer.get_extra_info("peername")),
            task=asyncio.current_task(),
        )
        self.connection_manager.register(writer, ctx)
        logger.info("New client connected: %s", ctx.peername)
        try:
            await ConnectionHandler(ctx, self._executor, self.inline_limit).run()
        except Exception as exc:
            logger.exception("Unhandled error for %s: %s", ctx.peername, exc)
        finally:
            self.connection_manager.unregister(writer)
