"""
Room registry and message routing for the signaling relay.

One ``serve`` call runs per connected peer. Every inbound message is routed by
its type to a handler that updates room membership and/or sends messages to
other peers. Lock order is always registry lock, then room lock; no lock is
held while sending.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Set, Tuple

from signaling.config import SERVER_SENDER_ID
from .errors import DeliveryError, LookupFailure, ProtocolViolation, SignalingError, TransportError
from .messages import SERVER_TYPES, SIGNALING_TYPES, Message, MessageType, peer_list_message
from .peer import Peer
from .room import Room

logger = logging.getLogger(__name__)


class SignalingCoordinator:
    def __init__(self):
        self._rooms: Dict[str, Room] = {}
        self._lock = asyncio.Lock()
        self._peers: Set[Peer] = set()

        self._handlers = {
            MessageType.JOIN: self._handle_join,
            MessageType.LEAVE: self._handle_leave,
            MessageType.RECONNECT: self._handle_reconnect,
        }
        self._handlers.update(dict.fromkeys(SIGNALING_TYPES, self._handle_signaling))
        self._handlers.update(dict.fromkeys(SERVER_TYPES, self._handle_server_type))

    # registry

    def _get_or_create_room(self, room_id: str) -> Room:
        # caller holds self._lock
        room = self._rooms.get(room_id)
        if room is None:
            room = Room(room_id)
            self._rooms[room_id] = room
            logger.info(f"Created room {room_id}")
        return room

    async def get_or_create_room(self, room_id: str) -> Room:
        async with self._lock:
            return self._get_or_create_room(room_id)

    async def get_room(self, room_id: str) -> Optional[Room]:
        async with self._lock:
            return self._rooms.get(room_id)

    async def snapshot(self) -> Dict[str, List[str]]:
        """Map of room id to member ids, for diagnostics"""
        async with self._lock:
            rooms = list(self._rooms.values())
        return {room.id: await room.list_member_ids() for room in rooms}

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    @property
    def active_connections(self) -> int:
        return len(self._peers)

    # connection loop

    async def serve(self, peer: Peer):
        """Run the receive loop for one peer until its connection fails"""
        self._peers.add(peer)
        logger.info(f"Peer {peer.id} connected")
        try:
            while True:
                message = await peer.connection.read_message()
                await self.dispatch(peer, message)
        except TransportError as e:
            logger.info(f"Connection of peer {peer.id} ended: {e}")
        finally:
            self._peers.discard(peer)
            await self._handle_disconnect(peer)

    async def dispatch(self, peer: Peer, message: Message):
        logger.info(
            f"Received message from peer {peer.id}: type={message.type}, room={message.room}, "
            f"from={message.from_}, target={message.target}"
        )
        kind = message.kind
        if kind is None:
            logger.warning(f"Unknown message type '{message.type}' from peer {peer.id}")
            return

        try:
            await self._handlers[kind](peer, message)
        except SignalingError as e:
            logger.warning(f"Dropped {message.type} from peer {peer.id}: {e}")

    # membership

    async def _enter_room(self, peer: Peer, room_id: str) -> Tuple[Room, List[str]]:
        """Put peer into room_id and return the room and the ids of the other members"""
        if peer.room and peer.room != room_id:
            await self._announce_leave(peer)

        async with self._lock:
            room = self._get_or_create_room(room_id)
            replaced = await room.add_member(peer)
            peer.room = room_id

        if replaced is not None and replaced is not peer:
            # the stale connection no longer owns this membership
            replaced.room = None
            logger.info(f"Peer {peer.id} replaced an older connection in room {room_id}")

        others = [peer_id for peer_id in await room.list_member_ids() if peer_id != peer.id]
        return room, others

    async def _exit_room(self, peer: Peer) -> Optional[Room]:
        """Remove peer from its room, deleting the room if it is now empty.

        Returns the room the peer was removed from, or None if it was in no room.
        """
        room_id = peer.room
        if not room_id:
            return None

        async with self._lock:
            peer.room = None
            room = self._rooms.get(room_id)
            if room is None:
                return None
            await room.remove_member(peer.id, expected=peer)
            if await room.is_empty():
                del self._rooms[room_id]
                logger.info(f"Room {room_id} is empty, removed")
        return room

    async def _announce_leave(self, peer: Peer):
        room = await self._exit_room(peer)
        if room is None:
            return
        logger.info(f"Peer {peer.id} left room {room.id}")
        await room.broadcast(
            Message(type=MessageType.PEER_LEFT.value, from_=peer.id, room=room.id),
            exclude_id=peer.id,
        )

    async def _send_peer_list(self, peer: Peer, kind: MessageType, room_id: str, peer_ids: List[str]):
        try:
            await peer.send(peer_list_message(kind, room_id, peer_ids, SERVER_SENDER_ID))
        except DeliveryError as e:
            logger.warning(f"Could not send {kind.value} to peer {peer.id}: {e.reason}")

    # handlers

    async def _handle_join(self, peer: Peer, message: Message):
        if not message.room:
            raise ProtocolViolation("room id is required to join")

        room, others = await self._enter_room(peer, message.room)
        logger.info(f"Peer {peer.id} joined room {room.id} ({len(others)} other peers)")

        await self._send_peer_list(peer, MessageType.PEERS, room.id, others)
        await room.broadcast(
            Message(type=MessageType.PEER_JOINED.value, from_=peer.id, room=room.id),
            exclude_id=peer.id,
        )

    async def _handle_reconnect(self, peer: Peer, message: Message):
        if not message.room:
            raise ProtocolViolation("room id is required to reconnect")

        # existing members already know this peer; nothing is broadcast
        room, others = await self._enter_room(peer, message.room)
        logger.info(f"Peer {peer.id} reconnected to room {room.id} ({len(others)} other peers)")

        await self._send_peer_list(peer, MessageType.RECONNECT_PEERS, room.id, others)

    async def _handle_leave(self, peer: Peer, message: Message):
        await self._announce_leave(peer)

    async def _handle_disconnect(self, peer: Peer):
        # no peer-left here: an unexpected drop is not announced
        room = await self._exit_room(peer)
        if room is not None:
            logger.info(f"Peer {peer.id} disconnected from room {room.id}")

    async def _handle_signaling(self, peer: Peer, message: Message):
        if not message.target:
            raise ProtocolViolation("target peer id is required for signaling messages")

        room = await self.get_room(message.room)
        if room is None:
            raise LookupFailure(f"room {message.room} not found")

        target = await room.get_member(message.target)
        if target is None:
            raise LookupFailure(f"target peer {message.target} not found in room {message.room}")

        await target.send(message.model_copy(update={"from_": peer.id}))

    async def _handle_server_type(self, peer: Peer, message: Message):
        logger.warning(f"Ignoring server-only message type '{message.type}' sent by peer {peer.id}")
