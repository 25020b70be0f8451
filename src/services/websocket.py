"""
WebSocket Connection Manager.
Accepts sockets, assigns connection ids and runs one writer task per socket
that drains the connection's outbound channel.
"""

import asyncio
import logging
import uuid
from typing import Dict

from fastapi import WebSocket, status

from src.services.broadcast import Subscription
from src.services.gateway import SyncGateway

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self, gateway: SyncGateway) -> None:
        self.gateway = gateway
        self.active_connections: Dict[str, WebSocket] = {}
        self.writer_tasks: Dict[str, asyncio.Task[None]] = {}

    async def connect(self, websocket: WebSocket) -> str:
        """
        Accepts a new WebSocket connection and returns its connection id.
        """
        connection_id = uuid.uuid4().hex
        # Subscribe before accepting so nothing published after the handshake is missed.
        subscription = self.gateway.connect(connection_id)
        try:
            await websocket.accept()
        except Exception:
            logger.warning("Handshake failed for %s", connection_id)
            self.gateway.disconnect(connection_id)
            raise

        self.active_connections[connection_id] = websocket
        self.writer_tasks[connection_id] = asyncio.create_task(self._writer(websocket, subscription))
        return connection_id

    async def disconnect(self, connection_id: str) -> None:
        """
        Removes a WebSocket connection and stops its writer.
        """
        self.gateway.disconnect(connection_id)
        self.active_connections.pop(connection_id, None)

        task = self.writer_tasks.pop(connection_id, None)
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _writer(self, websocket: WebSocket, subscription: Subscription) -> None:
        async for frame in subscription:
            try:
                await websocket.send_json(frame)
            # pylint: disable=broad-exception-caught
            except Exception as e:
                logger.warning("Error sending to WS %s: %s", subscription.connection_id, e)
                return

        if subscription.overflowed:
            logger.info("Closing slow consumer %s", subscription.connection_id)
            try:
                await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            # pylint: disable=broad-exception-caught
            except Exception as e:
                logger.debug("Close failed for %s: %s", subscription.connection_id, e)

    async def shutdown(self) -> None:
        for connection_id in list(self.active_connections):
            await self.disconnect(connection_id)
