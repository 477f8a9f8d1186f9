from __future__ import annotations
import asyncio
import inspect
import itertools
from contextlib import aclosing
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from shared.log import get_logger, log_ledger_message
from shared.message import (
    MessageKind,
    RemoteError,
    Request,
    TransportError,
    classify,
    parse_frame,
)

from .config import ClientConfig

logger = get_logger(__name__)


class Flow(str, Enum):
    """What a message handler wants the session to do next."""
    CONTINUE = "continue"
    STOP = "stop"


Document = Dict[str, Any]
HandlerResult = Optional[Flow]
MessageHandler = Callable[[Document], Union[HandlerResult, Awaitable[HandlerResult]]]

_session_ids = itertools.count(1)


class LedgerClient:
    """
    Runs one WebSocket session per request against the ledger service.

    Every call opens its own connection, sends exactly one frame and closes
    the connection when the session ends:
    - single-shot: after the first reply
    - streaming: on remote close, an error frame, or Flow.STOP
    """

    def __init__(self, config: Optional[ClientConfig] = None) -> None:
        self.config = config or ClientConfig()

    async def _connect(self, session: int) -> websockets.ClientConnection:
        uri = self.config.uri
        try:
            websocket = await websockets.connect(
                uri,
                open_timeout=self.config.open_timeout,
                ping_interval=self.config.ping_interval,
                ping_timeout=self.config.ping_timeout,
            )
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            raise TransportError(f"Cannot connect to {uri}: {e}") from e
        logger.debug("Connected", extra={"session": session, "uri": uri})
        return websocket

    async def stream(self, request: Request, streaming: bool = True) -> AsyncIterator[Document]:
        """
        Yield each inbound document of one session.

        Error documents raise RemoteError and end the session. Closing the
        generator closes the socket.
        """
        session = next(_session_ids)
        websocket = await self._connect(session)
        try:
            await websocket.send(request.to_json())
            logger.debug("Sent request", extra={"session": session, "command": request.command})

            async for raw in websocket:
                document = parse_frame(raw)
                kind = classify(document, streaming)
                if kind is MessageKind.ERROR:
                    log_ledger_message(logger, "warning", "Remote error reply",
                                       document=document, session=session, command=request.command)
                    raise RemoteError(document)
                log_ledger_message(logger, "debug", f"Received {kind.value}",
                                   document=document, session=session)
                yield document
                if kind is MessageKind.RESPONSE:
                    break
            else:
                logger.debug("Remote closed the session", extra={"session": session})
        except ConnectionClosed as e:
            raise TransportError(f"Connection to {self.config.uri} lost: {e}") from e
        finally:
            await websocket.close(code=1000)
            logger.debug("Closed", extra={"session": session})

    async def run(self, request: Request, on_message: MessageHandler, *, streaming: bool = False) -> None:
        """
        Drive one session, calling on_message once per inbound document.

        For streaming sessions on_message may return Flow.STOP to end early.
        Non-streaming sessions end after the first call whatever it returns.
        """
        async with aclosing(self.stream(request, streaming=streaming)) as documents:
            async for document in documents:
                outcome = on_message(document)
                if inspect.isawaitable(outcome):
                    outcome = await outcome
                if outcome is Flow.STOP:
                    break

    async def request(self, request: Request) -> Document:
        """Send a single-shot request and return its one reply"""
        replies: List[Document] = []
        await self.run(request, replies.append)
        if not replies:
            raise TransportError(f"Connection to {self.config.uri} closed before a reply arrived")
        return replies[0]
