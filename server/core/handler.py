from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor
from typing import Optional

from server.services import fib
from shared.protocol import ConnectionEnded, IoFault, framing

from .connection import ConnectionContext, HandlerState

logger = logging.getLogger(__name__)


class ConnectionHandler:
    """Serves one connection: read a request, answer it, repeat until the peer leaves.

    Indexes above ``inline_limit`` are computed in ``executor`` so a long
    computation never stalls the event loop shared with other connections.
    There is no read timeout, so a silent peer keeps its handler alive for as long
    as the connection stays open.
    """

    def __init__(self, ctx: ConnectionContext, executor: Optional[Executor] = None, inline_limit: int = 10_000) -> None:
        self.ctx = ctx
        self.executor = executor
        self.inline_limit = inline_limit

    async def run(self) -> None:
        ctx = self.ctx
        try:
            while True:
                ctx.transition(HandlerState.AWAITING_REQUEST)
                n = await framing.read_request(ctx.reader)

                ctx.transition(HandlerState.PROCESSING)
                value = await self._compute(n)
                logger.debug("fib(%s) = %s for %s", n, value, ctx.peername)

                ctx.transition(HandlerState.SENDING_RESPONSE)
                await framing.write_response(ctx.writer, value)
                ctx.requests_served += 1
        except ConnectionEnded as exc:
            logger.info("Worker ended for %s: %s", ctx.peername, exc.message)
        except IoFault as exc:
            logger.warning("Worker ended for %s after I/O fault: %s", ctx.peername, exc.message)
        finally:
            ctx.transition(HandlerState.CLOSED)
            await self._close()

    async def _compute(self, n: int) -> int:
        if self.executor is None or n <= self.inline_limit:
            return fib(n)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, fib, n)

    async def _close(self) -> None:
        writer = self.ctx.writer
        try:
            writer.close()
            await writer.wait_closed()
        except OSError as e:
            logger.debug("Error during writer cleanup for %s: %s", self.ctx.peername, e)
