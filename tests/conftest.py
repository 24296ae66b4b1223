from __future__ import annotations

import asyncio
import socket

import pytest_asyncio

from server.core import FibonacciServer


@pytest_asyncio.fixture
async def fib_server():
    server = FibonacciServer("127.0.0.1", 0)
    await server.start()
    serve_task = asyncio.create_task(server.serve_forever())
    try:
        yield server
    finally:
        await server.stop()
        await asyncio.wait_for(serve_task, timeout=5)


async def wait_until(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


def unused_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
