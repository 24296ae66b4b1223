from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

from .connection import ConnectionContext

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Registry of running connection handlers.

    Handlers insert themselves on dispatch and remove themselves on exit; nothing
    else is shared between them.
    """

    def __init__(self) -> None:
        self._by_writer: Dict[asyncio.StreamWriter, ConnectionContext] = {}

    def register(self, writer: asyncio.StreamWriter, ctx: ConnectionContext) -> None:
        self._by_writer[writer] = ctx

    def unregister(self, writer: asyncio.StreamWriter) -> Optional[ConnectionContext]:
        return self._by_writer.pop(writer, None)

    def active(self) -> List[ConnectionContext]:
        return list(self._by_writer.values())

    def __len__(self) -> int:
        return len(self._by_writer)

    async def close_all(self) -> None:
        """Close every registered connection and cancel its handler task."""
        contexts = self.active()
        tasks = []
        for ctx in contexts:
            ctx.writer.close()
            if ctx.task and ctx.task is not asyncio.current_task() and not ctx.task.done():
                ctx.task.cancel()
                tasks.append(ctx.task)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if contexts:
            logger.info("Stopped %s connection handler(s)", len(contexts))
