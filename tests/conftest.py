import asyncio
import json
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
import websockets

from rippler.config import ClientConfig
from rippler.dispatcher import Dispatcher
from rippler.ws_client import Flow, LedgerClient

# Script markers understood by FakeLedger
CLOSE = "__close__"   # close the socket normally
CRASH = "__crash__"   # handler raises; server closes with 1011

GENESIS = "rHb9CJAWyB4rj91VRWn96DkukG4bwdtyTh"
BITSTAMP = "rvYAfWj5gh67oV6fW32ZzP3Aw4Eubs59B"


class FakeLedger:
    """In-process ledger server: records each request, replays scripted frames."""

    def __init__(self) -> None:
        self.uri = ""
        self.frames: List[Any] = []
        self.requests: List[Dict[str, Any]] = []
        self.connections = 0
        self.sessions_closed = asyncio.Event()

    async def handler(self, websocket) -> None:
        self.connections += 1
        self.requests.append(json.loads(await websocket.recv()))
        for frame in self.frames:
            if frame == CLOSE:
                await websocket.close()
                return
            if frame == CRASH:
                raise RuntimeError("ledger crashed")
            await websocket.send(frame if isinstance(frame, str) else json.dumps(frame))
        await websocket.wait_closed()
        self.sessions_closed.set()


@pytest_asyncio.fixture
async def ledger():
    fake = FakeLedger()
    async with websockets.serve(fake.handler, "127.0.0.1", 0) as server:
        port = list(server.sockets)[0].getsockname()[1]
        fake.uri = f"ws://127.0.0.1:{port}"
        yield fake


@pytest.fixture
def client(ledger) -> LedgerClient:
    return LedgerClient(ClientConfig(uri=ledger.uri, ping_interval=None))


class DummyClient:
    """Stands in for LedgerClient: scripted replies and stream events."""

    def __init__(self, replies: Optional[List[Any]] = None, events: Optional[List[Any]] = None) -> None:
        self.replies = list(replies or [])
        self.events = list(events or [])
        self.requests: List[Dict[str, Any]] = []
        self.streaming: List[bool] = []

    async def request(self, request):
        self.requests.append(request.to_dict())
        self.streaming.append(False)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def run(self, request, on_message, *, streaming=False):
        self.requests.append(request.to_dict())
        self.streaming.append(streaming)
        for event in self.events:
            if isinstance(event, Exception):
                raise event
            if on_message(event) is Flow.STOP:
                break


@pytest.fixture
def make_dispatcher():
    def factory(replies=None, events=None, **config):
        dummy = DummyClient(replies, events)
        emitted: List[Any] = []
        dispatcher = Dispatcher(ClientConfig(**config), client=dummy, emit=emitted.append)
        return dispatcher, dummy, emitted
    return factory
