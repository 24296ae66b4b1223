from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys

from server.config import SERVER_CONFIG, ConfigError, load_server_config
from server.core import AcceptLoopError, BindError, FibonacciServer
from shared.cli import ConnectionEndpoint
from shared.protocol.errors import ExitCode
from shared.settings import configure_logging, load_settings

logger = logging.getLogger(__name__)

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


async def run_server(endpoint: ConnectionEndpoint) -> ExitCode:
    load_settings()
    try:
        load_server_config()
    except ConfigError as exc:
        print(f"invalid server config: {exc}", file=sys.stderr)
        return ExitCode.BAD_ENV_CONFIG
    configure_logging(SERVER_CONFIG["log_level"])

    server = FibonacciServer(
        endpoint.address,
        endpoint.port,
        backlog=SERVER_CONFIG["backlog"],
        workers=SERVER_CONFIG["workers"],
        inline_limit=SERVER_CONFIG["inline_limit"],
    )
    try:
        await server.start()
    except BindError as exc:
        logger.error("%s", exc)
        return ExitCode.BIND_FAILED

    loop = asyncio.get_running_loop()
    for sig in STOP_SIGNALS:
        # add_signal_handler is unavailable on Windows event loops
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, server.request_stop)

    try:
        await server.serve_forever()
        await server.wait_stopped()
    except AcceptLoopError:
        return ExitCode.SERVER_FAILED
    finally:
        for sig in STOP_SIGNALS:
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(sig)
    return ExitCode.OK


if __name__ == "__main__":
    from shared.cli import main

    sys.exit(main())
