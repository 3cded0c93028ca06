import asyncio

import pytest

from signaling.routes.rtc.coordinator import SignalingCoordinator
from signaling.routes.rtc.errors import TransportError
from signaling.routes.rtc.messages import Message
from signaling.routes.rtc.peer import Peer


class FakeConnection:
    """In-memory stand-in for a WebSocket connection"""

    def __init__(self, broken=False):
        self.sent = []
        self.broken = broken
        self._inbound = None

    @property
    def inbound(self) -> asyncio.Queue:
        if self._inbound is None:
            self._inbound = asyncio.Queue()
        return self._inbound

    def feed(self, **fields):
        self.inbound.put_nowait(Message(**fields))

    def drop(self):
        self.inbound.put_nowait(None)

    async def read_message(self) -> Message:
        message = await self.inbound.get()
        if message is None:
            raise TransportError("connection closed")
        return message

    async def send_message(self, message: Message):
        if self.broken:
            raise TransportError("connection closed")
        self.sent.append(message)

    def types(self):
        return [m.type for m in self.sent]


@pytest.fixture
def make_peer():
    def factory(peer_id, broken=False):
        return Peer(peer_id, FakeConnection(broken=broken))
    return factory


@pytest.fixture
def coordinator():
    return SignalingCoordinator()
