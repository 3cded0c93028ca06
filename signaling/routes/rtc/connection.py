import logging

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from .errors import TransportError
from .messages import Message

logger = logging.getLogger(__name__)


class WebSocketConnection:
    """Reads and writes Message frames over an accepted WebSocket"""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    async def read_message(self) -> Message:
        """Wait for the next frame; raises TransportError on close or malformed data"""
        frame = await self.websocket.receive()
        if frame["type"] == "websocket.disconnect":
            raise TransportError(f"connection closed (code {frame.get('code', 1000)})")

        data = frame.get("text")
        if data is None:
            data = frame.get("bytes")
        if data is None:
            raise TransportError("empty frame")

        try:
            return Message.from_json(data)
        except ValueError as e:
            raise TransportError(f"malformed frame: {e}") from e

    async def send_message(self, message: Message):
        try:
            await self.websocket.send_text(message.to_json())
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            raise TransportError(f"send failed: {e!r}") from e

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def close(self):
        if not self.is_open:
            return
        try:
            await self.websocket.close()
        except (RuntimeError, OSError) as e:
            logger.debug(f"Error closing WebSocket: {e}")
