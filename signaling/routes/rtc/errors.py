"""
Errors raised while relaying signaling traffic.

None of these are ever reported back to a client; they are logged server-side.
"""


class SignalingError(Exception):
    """Base class for relay failures"""


class ProtocolViolation(SignalingError):
    """A message is missing a field its type requires"""


class LookupFailure(SignalingError):
    """The room or target peer named by a message does not exist"""


class DeliveryError(SignalingError):
    """Writing a message to one peer's channel failed"""

    def __init__(self, peer_id: str, reason: str):
        super().__init__(f"delivery to peer {peer_id} failed: {reason}")
        self.peer_id = peer_id
        self.reason = reason


class TransportError(SignalingError):
    """The underlying connection was closed or sent an unreadable frame"""
