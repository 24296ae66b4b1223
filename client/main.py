from __future__ import annotations

import logging
import sys

from client.config import CLIENT_CONFIG, ConfigError, load_config
from client.core import FibonacciClient, NetworkError
from client.ui import FibonacciCLI
from shared.cli import ConnectionEndpoint
from shared.protocol.errors import ExitCode, ProtocolError
from shared.settings import configure_logging, load_settings

logger = logging.getLogger(__name__)


async def run_client(endpoint: ConnectionEndpoint) -> ExitCode:
    load_settings()
    try:
        load_config()
    except ConfigError as exc:
        print(f"invalid client config: {exc}", file=sys.stderr)
        return ExitCode.BAD_ENV_CONFIG
    configure_logging(CLIENT_CONFIG["log_level"])

    client = FibonacciClient(endpoint.address, endpoint.port)
    try:
        await client.connect()
    except NetworkError as exc:
        print(exc.message, file=sys.stderr)
        return ExitCode.CONNECT_FAILED

    cli = FibonacciCLI(client)
    try:
        await cli.run()
    except ProtocolError as exc:
        logger.error("Session failed: %s", exc)
        print(f"session failed: {exc.message}", file=sys.stderr)
        return ExitCode.SESSION_FAILED
    return ExitCode.OK


if __name__ == "__main__":
    from shared.cli import main

    sys.exit(main())
