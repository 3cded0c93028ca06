import asyncio
import logging
from typing import Dict, List, Optional

from .errors import DeliveryError
from .messages import Message
from .peer import Peer

logger = logging.getLogger(__name__)


class Room:
    def __init__(self, room_id: str):
        self.id = room_id
        self._members: Dict[str, Peer] = {}  # peer_id -> Peer
        self._lock = asyncio.Lock()

    async def add_member(self, peer: Peer) -> Optional[Peer]:
        """Add a peer, replacing any entry with the same id. Returns the replaced peer."""
        async with self._lock:
            previous = self._members.get(peer.id)
            self._members[peer.id] = peer
        return previous

    async def remove_member(self, peer_id: str, expected: Optional[Peer] = None) -> bool:
        """Remove a peer if present. With ``expected``, only remove that exact Peer."""
        async with self._lock:
            current = self._members.get(peer_id)
            if current is None:
                return False
            if expected is not None and current is not expected:
                return False
            del self._members[peer_id]
            return True

    async def list_member_ids(self) -> List[str]:
        async with self._lock:
            return list(self._members)

    async def get_member(self, peer_id: str) -> Optional[Peer]:
        async with self._lock:
            return self._members.get(peer_id)

    async def is_empty(self) -> bool:
        async with self._lock:
            return not self._members

    async def broadcast(self, message: Message, exclude_id: Optional[str] = None) -> Dict[str, DeliveryError]:
        """Send a message to every member except ``exclude_id``.

        Recipients are snapshotted under the lock and written to concurrently
        afterwards. A failed delivery is logged and returned, never raised.
        """
        async with self._lock:
            recipients = [p for peer_id, p in self._members.items() if peer_id != exclude_id]

        if not recipients:
            return {}

        results = await asyncio.gather(*(p.send(message) for p in recipients), return_exceptions=True)

        failures: Dict[str, DeliveryError] = {}
        for peer, result in zip(recipients, results):
            if isinstance(result, DeliveryError):
                logger.warning(f"Broadcast of {message.type} in room {self.id} to peer {peer.id} failed: {result.reason}")
                failures[peer.id] = result
            elif isinstance(result, BaseException):
                raise result
        return failures

    def __repr__(self):
        return f"Room(id={self.id!r}, members={len(self._members)})"
