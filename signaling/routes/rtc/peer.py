import asyncio
import logging
from typing import Optional

from .errors import DeliveryError, TransportError
from .messages import Message

logger = logging.getLogger(__name__)


class Peer:
    """One connected client: its id, its channel and the room it is in"""

    def __init__(self, peer_id: str, connection):
        self.id = peer_id
        self.connection = connection
        self.room: Optional[str] = None
        self._send_lock = asyncio.Lock()

    async def send(self, message: Message):
        """Write a message to this peer; raises DeliveryError if the channel is gone"""
        logger.debug(
            f"Sending to peer {self.id}: type={message.type}, target={message.target}, "
            f"from={message.from_}, room={message.room}"
        )
        async with self._send_lock:
            try:
                await self.connection.send_message(message)
            except TransportError as e:
                raise DeliveryError(self.id, str(e)) from e

    def __repr__(self):
        return f"Peer(id={self.id!r}, room={self.room!r})"
