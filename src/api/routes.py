"""
API Routes definition.
Handles health, history and typing queries, and the real-time WebSocket.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from src.api.dependencies import get_connection_manager, get_gateway
from src.core.message import Message
from src.services.gateway import SyncGateway
from src.services.websocket import ConnectionManager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(gateway: SyncGateway = Depends(get_gateway)) -> Dict[str, Any]:
    """Returns the node status"""
    return {
        "status": "online",
        "connections": gateway.connection_count(),
        "sessions": len(gateway.registry),
        "messages": len(gateway.history),
    }


@router.get("/messages", response_model=List[Message])
async def get_messages(gateway: SyncGateway = Depends(get_gateway)) -> List[Message]:
    """
    Retrieves the full message history in log order.
    """
    return await gateway.find_all_messages()


@router.get("/typing")
async def get_typing(gateway: SyncGateway = Depends(get_gateway)) -> Dict[str, List[str]]:
    """Returns the names currently typing."""
    return {"names": gateway.typing_names()}


# === WebSocket Route ===


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    gateway: SyncGateway = Depends(get_gateway),
    manager: ConnectionManager = Depends(get_connection_manager),
) -> None:
    """
    Real-time chat endpoint.
    Frames from one connection are handled strictly in the order received.
    Binary frames are decoded as UTF-8 JSON like text frames.
    """
    connection_id = await manager.connect(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.debug("Client %s disconnected", connection_id)
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            await gateway.dispatch(connection_id, raw)
    except WebSocketDisconnect:
        logger.debug("Client %s disconnected", connection_id)
    finally:
        await manager.disconnect(connection_id)
