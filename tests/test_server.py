from __future__ import annotations

import asyncio
import os
import signal
import sys
from unittest.mock import AsyncMock

import pytest

from conftest import unused_port, wait_until
from server.core import AcceptLoopError, BindError, FibonacciServer, HandlerState
from server.main import run_server
from server.services import fib
from shared.cli import ConnectionEndpoint, Role
from shared.protocol import decode_response, encode_request
from shared.protocol.errors import ExitCode


async def _open(server):
    return await asyncio.open_connection("127.0.0.1", server.bound_port)


async def _ask(reader, writer, n):
    writer.write(encode_request(n))
    await writer.drain()
    return decode_response(await reader.readexactly(8))


async def _close(writer):
    writer.close()
    await writer.wait_closed()


@pytest.mark.asyncio
@pytest.mark.parametrize("n,expected", [(0, 0), (1, 1), (10, 55), (-5, -1), (93, -6246583658587674878)])
async def test_boundary_requests(fib_server, n, expected):
    reader, writer = await _open(fib_server)
    assert await _ask(reader, writer, n) == expected
    await _close(writer)


@pytest.mark.asyncio
async def test_repeated_query_is_idempotent(fib_server):
    reader, writer = await _open(fib_server)
    assert await _ask(reader, writer, 20) == 6765
    assert await _ask(reader, writer, 20) == 6765
    await _close(writer)


@pytest.mark.asyncio
async def test_back_to_back_requests_answered_in_order(fib_server):
    reader, writer = await _open(fib_server)
    writer.write(encode_request(10) + encode_request(-3) + encode_request(12))
    await writer.drain()
    answers = [decode_response(await reader.readexactly(8)) for _ in range(3)]
    assert answers == [55, -1, 144]
    await _close(writer)


@pytest.mark.asyncio
async def test_concurrent_clients_are_independent(fib_server):
    async def session(n, repeats):
        reader, writer = await _open(fib_server)
        try:
            return [await _ask(reader, writer, n) for _ in range(repeats)]
        finally:
            await _close(writer)

    results = await asyncio.gather(session(10, 5), session(30, 5), session(-1, 5))
    assert results == [[55] * 5, [832040] * 5, [-1] * 5]


@pytest.mark.asyncio
async def test_silent_client_does_not_block_others(fib_server):
    _, idle_writer = await _open(fib_server)
    reader, writer = await _open(fib_server)
    assert await _ask(reader, writer, 15) == 610
    await _close(writer)
    await _close(idle_writer)


@pytest.mark.asyncio
async def test_partial_frame_ends_worker_only(fib_server):
    _, writer = await _open(fib_server)
    await wait_until(lambda: len(fib_server.connection_manager) == 1)
    ctx = fib_server.connection_manager.active()[0]
    writer.write(b"\x00\x00")
    await writer.drain()
    await _close(writer)

    await wait_until(lambda: len(fib_server.connection_manager) == 0)
    assert ctx.state is HandlerState.CLOSED
    assert ctx.requests_served == 0

    reader, writer = await _open(fib_server)
    assert await _ask(reader, writer, 2) == 1
    await _close(writer)


@pytest.mark.asyncio
async def test_handler_counts_served_requests(fib_server):
    reader, writer = await _open(fib_server)
    await _ask(reader, writer, 1)
    await _ask(reader, writer, 2)
    ctx = fib_server.connection_manager.active()[0]
    assert ctx.requests_served == 2
    assert ctx.state is HandlerState.AWAITING_REQUEST
    await _close(writer)


@pytest.mark.asyncio
async def test_bind_failure_raises_bind_error(fib_server):
    other = FibonacciServer("127.0.0.1", fib_server.bound_port)
    with pytest.raises(BindError):
        await other.start()


@pytest.mark.asyncio
async def test_run_server_exits_on_bind_failure(fib_server):
    endpoint = ConnectionEndpoint(host="127.0.0.1", port=fib_server.bound_port, role=Role.SERVER, address="127.0.0.1")
    assert await run_server(endpoint) is ExitCode.BIND_FAILED


@pytest.mark.asyncio
async def test_stop_closes_open_connections():
    server = FibonacciServer("127.0.0.1", 0)
    await server.start()
    serve_task = asyncio.create_task(server.serve_forever())
    reader, writer = await _open(server)
    assert await _ask(reader, writer, 5) == 5

    await server.stop()
    await asyncio.wait_for(serve_task, timeout=5)
    assert await reader.read() == b""
    assert len(server.connection_manager) == 0
    writer.close()


@pytest.mark.asyncio
async def test_accept_loop_failure_stops_handlers(monkeypatch):
    server = FibonacciServer("127.0.0.1", 0)
    await server.start()
    await server._server.start_serving()
    reader, writer = await _open(server)
    assert await _ask(reader, writer, 7) == 13

    monkeypatch.setattr(server._server, "serve_forever", AsyncMock(side_effect=OSError("accept failed")))
    with pytest.raises(AcceptLoopError):
        await server.serve_forever()

    assert len(server.connection_manager) == 0
    assert await reader.read() == b""
    writer.close()


@pytest.mark.asyncio
async def test_long_computation_does_not_block_other_clients(fib_server):
    busy_reader, busy_writer = await _open(fib_server)
    busy_writer.write(encode_request(5_000_000))
    await busy_writer.drain()
    await wait_until(
        lambda: any(ctx.state is HandlerState.PROCESSING for ctx in fib_server.connection_manager.active())
    )
    busy_answer = asyncio.ensure_future(busy_reader.readexactly(8))

    loop = asyncio.get_running_loop()
    started = loop.time()
    reader, writer = await _open(fib_server)
    assert await _ask(reader, writer, 10) == 55
    assert loop.time() - started < 1.0
    assert not busy_answer.done()

    busy_answer.cancel()
    await _close(writer)
    await _close(busy_writer)


@pytest.mark.asyncio
async def test_indexes_above_inline_limit_use_worker_pool():
    server = FibonacciServer("127.0.0.1", 0, inline_limit=10, workers=1)
    await server.start()
    serve_task = asyncio.create_task(server.serve_forever())
    try:
        reader, writer = await _open(server)
        assert await _ask(reader, writer, 10) == 55
        assert await _ask(reader, writer, 93) == -6246583658587674878
        assert await _ask(reader, writer, 5000) == fib(5000)
        await _close(writer)
    finally:
        await server.stop()
        await asyncio.wait_for(serve_task, timeout=5)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "key,value",
    [
        ("SERVER_BACKLOG", "many"),
        ("SERVER_BACKLOG", "0"),
        ("SERVER_WORKERS", "-2"),
        ("SERVER_INLINE_LIMIT", "zero"),
        ("SERVER_LOG_LEVEL", "chatty"),
    ],
)
async def test_run_server_rejects_bad_environment(monkeypatch, capsys, key, value):
    monkeypatch.setenv(key, value)
    endpoint = ConnectionEndpoint(host="127.0.0.1", port=unused_port(), role=Role.SERVER, address="127.0.0.1")

    assert await run_server(endpoint) is ExitCode.BAD_ENV_CONFIG
    assert "invalid server config" in capsys.readouterr().err


async def _connect_when_listening(port, timeout=5.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        try:
            return await asyncio.open_connection("127.0.0.1", port)
        except OSError:
            if loop.time() > deadline:
                raise
            await asyncio.sleep(0.05)


@pytest.mark.asyncio
@pytest.mark.skipif(sys.platform == "win32", reason="loop signal handlers are POSIX only")
async def test_sigterm_closes_connections_before_run_server_returns():
    port = unused_port()
    endpoint = ConnectionEndpoint(host="127.0.0.1", port=port, role=Role.SERVER, address="127.0.0.1")
    server_task = asyncio.create_task(run_server(endpoint))

    reader, writer = await _connect_when_listening(port)
    assert await _ask(reader, writer, 10) == 55

    os.kill(os.getpid(), signal.SIGTERM)
    assert await asyncio.wait_for(server_task, timeout=5) is ExitCode.OK
    assert await reader.read() == b""
    writer.close()
