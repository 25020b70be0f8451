"""
FastAPI dependencies resolving the services owned by the application.
"""

from fastapi.requests import HTTPConnection

from src.services.gateway import SyncGateway
from src.services.websocket import ConnectionManager


def get_gateway(connection: HTTPConnection) -> SyncGateway:
    """Returns the gateway attached to the running app."""
    return connection.app.state.gateway


def get_connection_manager(connection: HTTPConnection) -> ConnectionManager:
    """Returns the WebSocket connection manager attached to the running app."""
    return connection.app.state.connection_manager
