from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Optional

from client.config import CLIENT_CONFIG
from client.core import FibonacciClient
from shared.protocol.errors import ProtocolError
from shared.protocol.messages import FibRequest

logger = logging.getLogger(__name__)

InputFunc = Callable[[str], str]


class FibonacciCLI:
    """Console loop: one integer per line, an empty line quits."""

    def __init__(
        self,
        client: FibonacciClient,
        input_func: Optional[InputFunc] = None,
        prompt: Optional[str] = None,
        answer_label: Optional[str] = None,
    ) -> None:
        self.client = client
        self.input_func = input_func or input
        self.prompt = CLIENT_CONFIG["prompt"] if prompt is None else prompt
        self.answer_label = answer_label or CLIENT_CONFIG["answer_label"]
        self.requests_sent = 0

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            while True:
                line = await self._read_line(loop)
                if not line:
                    print("CLIENT DONE")
                    break
                try:
                    request = FibRequest.parse_line(line)
                except ProtocolError as exc:
                    logger.debug("Rejected input: %s", exc)
                    print(f"input isn't integer or too large: {line}")
                    continue
                value = await self.client.request(request.n)
                self.requests_sent += 1
                print(f"{self.answer_label}: {value}")
        finally:
            await self.client.close()

    async def _read_line(self, loop: asyncio.AbstractEventLoop) -> str:
        # input() blocks, keep it off the event loop
        try:
            line = await loop.run_in_executor(None, self.input_func, self.prompt)
        except EOFError:
            logger.info("End of input, closing session")
            return ""
        return line.rstrip("\r\n")
