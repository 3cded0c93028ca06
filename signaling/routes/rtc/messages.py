import json
from enum import Enum
from typing import Dict, Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class MessageType(str, Enum):
    # client -> server
    JOIN = "join"
    LEAVE = "leave"
    RECONNECT = "reconnect"
    OFFER = "offer"
    ANSWER = "answer"
    ICE_CANDIDATE = "ice-candidate"
    # server -> client
    PEERS = "peers"
    PEER_JOINED = "peer-joined"
    RECONNECT_PEERS = "reconnect-peers"
    PEER_LEFT = "peer-left"


SIGNALING_TYPES = frozenset({MessageType.OFFER, MessageType.ANSWER, MessageType.ICE_CANDIDATE})

SERVER_TYPES = frozenset({
    MessageType.PEERS,
    MessageType.PEER_JOINED,
    MessageType.RECONNECT_PEERS,
    MessageType.PEER_LEFT,
})

TEXT_FIELDS = ("type", "target", "from", "room")

_WHITESPACE = " \t\n\r"


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


_decoder = json.JSONDecoder(parse_constant=_reject_constant)


def _skip_whitespace(text: str, idx: int) -> int:
    while idx < len(text) and text[idx] in _WHITESPACE:
        idx += 1
    return idx


def split_object(text: str) -> Dict[str, str]:
    """Split a JSON object into its members, keeping every value as raw JSON text.

    Raises ValueError if ``text`` is not exactly one JSON object.
    """
    idx = _skip_whitespace(text, 0)
    if not text.startswith("{", idx):
        raise ValueError("frame is not a JSON object")
    idx = _skip_whitespace(text, idx + 1)

    members: Dict[str, str] = {}
    if text.startswith("}", idx):
        idx += 1
    else:
        while True:
            key, idx = _decoder.raw_decode(text, idx)
            if not isinstance(key, str):
                raise ValueError("object keys must be strings")
            idx = _skip_whitespace(text, idx)
            if not text.startswith(":", idx):
                raise ValueError("expected ':' after object key")
            idx = _skip_whitespace(text, idx + 1)

            _, end = _decoder.raw_decode(text, idx)
            members[key] = text[idx:end]

            idx = _skip_whitespace(text, end)
            if text.startswith(",", idx):
                idx = _skip_whitespace(text, idx + 1)
            elif text.startswith("}", idx):
                idx += 1
                break
            else:
                raise ValueError("expected ',' or '}' in object")

    if _skip_whitespace(text, idx) != len(text):
        raise ValueError("trailing data after JSON object")
    return members


class Message(BaseModel):
    """One signaling frame.

    ``payload`` holds the raw JSON text of the payload exactly as received; it
    is never decoded and is written back out byte for byte.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: str = ""
    target: str = ""
    from_: str = Field("", alias="from")
    room: str = ""
    payload: Optional[str] = None

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> "Message":
        """Parse one frame; raises ValueError (incl. pydantic's ValidationError) when malformed"""
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        members = split_object(data)
        fields = {name: json.loads(members[name]) for name in TEXT_FIELDS if name in members}
        fields["payload"] = members.get("payload")
        return cls.model_validate(fields)

    @property
    def kind(self) -> Optional[MessageType]:
        """The message type as a MessageType, or None when unrecognized"""
        try:
            return MessageType(self.type)
        except ValueError:
            return None

    def to_json(self) -> str:
        data = self.model_dump(by_alias=True, exclude={"payload"})
        if not self.target:
            del data["target"]
        text = json.dumps(data)
        if self.payload is None:
            return text
        return f'{text[:-1]}, "payload": {self.payload}}}'


def peer_list_message(kind: MessageType, room_id: str, peer_ids: Iterable[str], sender: str) -> Message:
    """Build a ``peers`` / ``reconnect-peers`` response"""
    return Message(type=kind.value, from_=sender, room=room_id, payload=json.dumps({"peers": list(peer_ids)}))
