from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class HandlerState(str, Enum):
    AWAITING_REQUEST = "awaiting_request"
    PROCESSING = "processing"
    SENDING_RESPONSE = "sending_response"
    CLOSED = "closed"


@dataclass
class ConnectionContext:
    reader: asyncio.StreamReader
    writer: asyncio.StreamWriter
    peername: str
    state: HandlerState = HandlerState.AWAITING_REQUEST
    requests_served: int = 0
    task: Optional[asyncio.Task] = None

    def transition(self, state: HandlerState) -> None:
        self.state = state
