from .connection import ConnectionContext, HandlerState
from .connection_manager import ConnectionManager
from .handler import ConnectionHandler
from .server import AcceptLoopError, BindError, FibonacciServer

__all__ = [
    "ConnectionContext",
    "HandlerState",
    "ConnectionManager",
    "ConnectionHandler",
    "AcceptLoopError",
    "BindError",
    "FibonacciServer",
]
