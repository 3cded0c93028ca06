import logging
from typing import Optional

from fastapi import APIRouter, Query, Request, WebSocket, status
from starlette.requests import HTTPConnection

from signaling.config import CLIENT_ID_PARAM, WS_PATH
from signaling.routes.rtc.connection import WebSocketConnection
from signaling.routes.rtc.coordinator import SignalingCoordinator
from signaling.routes.rtc.peer import Peer

logger = logging.getLogger(__name__)

websocket_router = APIRouter()


def get_coordinator(connection: HTTPConnection) -> SignalingCoordinator:
    return connection.app.state.coordinator


@websocket_router.websocket(WS_PATH)
async def websocket_endpoint(websocket: WebSocket, client_id: Optional[str] = Query(None, alias=CLIENT_ID_PARAM)):
    """WebSocket endpoint for WebRTC signaling; one connection per peer"""

    if not client_id:
        logger.warning("WebSocket connection rejected: client id is required")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Client ID is required")
        return

    coordinator = get_coordinator(websocket)

    await websocket.accept()
    logger.info(f"WebSocket connection established for peer: {client_id}")

    connection = WebSocketConnection(websocket)
    try:
        await coordinator.serve(Peer(client_id, connection))
    except Exception as e:
        logger.error(f"Error in WebSocket connection for peer {client_id}: {e}", exc_info=True)
    finally:
        await connection.close()
        logger.info(f"WebSocket closed for peer: {client_id}")


@websocket_router.get("/health")
async def health_check(request: Request):
    """Health check endpoint"""
    coordinator = get_coordinator(request)
    return {
        "status": "healthy",
        "active_connections": coordinator.active_connections,
        "active_rooms": coordinator.room_count,
    }


@websocket_router.get("/rooms")
async def get_rooms(request: Request):
    """Get current rooms and their peers"""
    snapshot = await get_coordinator(request).snapshot()
    return {
        "rooms": [{"room_id": room_id, "peers": sorted(peers)} for room_id, peers in sorted(snapshot.items())],
        "total_rooms": len(snapshot),
    }
