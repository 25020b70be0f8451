"""
Sync gateway: the protocol-facing controller.
Owns the per-connection state machine (connected -> joined -> disconnected)
and drives the registry, history log, typing presence and broadcast bus.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List

from pydantic import ValidationError

from src.config.settings import Settings
from src.core.errors import ChatError, InvalidMessage, InvalidName, MalformedFrame, NotJoined, SessionNotFound
from src.core.events import Frame, MessageCreated
from src.core.message import Message
from src.core.protocol import ClientFrame, CreateMessageRequest, JoinRequest, TypingRequest
from src.core.session import Session
from src.services.broadcast import BroadcastBus, Subscription
from src.services.history import HistoryLog
from src.services.presence import TypingPresence
from src.services.registry import SessionRegistry

logger = logging.getLogger(__name__)

Handler = Callable[[str, Dict[str, Any]], Awaitable[Any]]


class SyncGateway:
    """Handles join/createMessage/typing/findAllMessages for every connection."""

    def __init__(
        self,
        registry: SessionRegistry,
        history: HistoryLog,
        bus: BroadcastBus,
        presence: TypingPresence | None = None,
        typing_window: float = 1.25,
    ):
        self.registry = registry
        self.history = history
        self.bus = bus
        self.presence = presence or TypingPresence(registry, on_change=bus.publish, window=typing_window)
        self._connections: Dict[str, Subscription] = {}
        # Held across append + publish so broadcast order matches log order.
        self._write_lock = asyncio.Lock()
        self._handlers: Dict[str, Handler] = {
            "join": self._on_join,
            "createMessage": self._on_create_message,
            "typing": self._on_typing,
            "findAllMessages": self._on_find_all_messages,
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "SyncGateway":
        """Builds a gateway with fresh, isolated services."""
        registry = SessionRegistry()
        bus = BroadcastBus(queue_size=settings.outbound_queue_size, policy=settings.slow_consumer_policy)
        return cls(
            registry=registry,
            history=HistoryLog(),
            bus=bus,
            presence=TypingPresence(registry, on_change=bus.publish, window=settings.typing_expiry_seconds),
        )

    # --- Connection lifecycle ---

    def connect(self, connection_id: str) -> Subscription:
        """Registers an anonymous connection and returns its outbound channel."""
        subscription = self.bus.subscribe(connection_id)
        self._connections[connection_id] = subscription
        logger.info("Connection %s opened. Total: %d", connection_id, len(self._connections))
        return subscription

    def disconnect(self, connection_id: str) -> None:
        """Tears a connection down. Safe to call more than once."""
        session = self.registry.remove(connection_id)
        if session is not None:
            self.presence.discard(session)
        self.bus.unsubscribe(connection_id)
        if self._connections.pop(connection_id, None) is not None:
            logger.info("Connection %s closed. Total: %d", connection_id, len(self._connections))

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def connection_count(self) -> int:
        return len(self._connections)

    # --- Operations ---

    def join(self, connection_id: str, name: str) -> Session:
        self._require_connection(connection_id)
        session = self.registry.join(connection_id, name)
        if session.is_typing:
            # A rename can change TypingSet membership.
            self.presence.refresh()
        return session

    async def find_all_messages(self) -> List[Message]:
        return await self.history.snapshot()

    async def create_message(
        self,
        connection_id: str,
        body: str,
        name: str | None = None,
        timestamp: datetime | None = None,
    ) -> Message:
        """Appends a message from a joined session and broadcasts it."""
        session = self._require_session(connection_id)
        if name is not None and name.strip() != session.name:
            logger.warning(
                "Connection %s sent as %r but is joined as %r; using session name",
                connection_id,
                name,
                session.name,
            )

        message = Message.create(sender=session.name, body=body, client_timestamp=timestamp)

        async with self._write_lock:
            stored = await self.history.append(message)
            self.bus.publish(MessageCreated(message=stored))

        return stored

    def typing(self, connection_id: str, is_typing: bool) -> None:
        session = self._require_session(connection_id)
        self.presence.signal(session, is_typing)

    def typing_names(self) -> List[str]:
        return self.presence.typing_names()

    # --- Frame dispatch ---

    async def dispatch(self, connection_id: str, raw: str | bytes) -> None:
        """
        Decodes and handles one inbound frame.
        Results and errors go back to the originating connection only.
        """
        frame_id = None
        try:
            if isinstance(raw, bytes):
                try:
                    raw = raw.decode("utf-8")
                except UnicodeDecodeError as e:
                    raise MalformedFrame("Binary frame is not UTF-8") from e
            try:
                frame = ClientFrame.model_validate_json(raw)
            except ValidationError as e:
                raise MalformedFrame("Frame is not a valid event envelope") from e

            frame_id = frame.id
            handler = self._handlers.get(frame.event)
            if handler is None:
                raise MalformedFrame(f"Unknown event: {frame.event}")

            result = await handler(connection_id, frame.data)
            if frame.event == "findAllMessages" or frame_id is not None:
                self._reply(connection_id, {"event": frame.event, "id": frame_id, "data": result})

        except SessionNotFound:
            logger.debug("Dropping frame for vanished connection %s", connection_id)
        except ChatError as e:
            logger.warning("Rejected frame from %s: %s (%s)", connection_id, e.code, e.detail)
            self._reply(connection_id, {"event": "error", "id": frame_id, "data": {"code": e.code, "detail": e.detail}})

    async def _on_join(self, connection_id: str, data: Dict[str, Any]) -> Dict[str, str]:
        try:
            request = JoinRequest.model_validate(data)
        except ValidationError as e:
            raise InvalidName("Join requires a name") from e
        session = self.join(connection_id, request.name)
        return {"name": session.name}

    async def _on_create_message(self, connection_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        # Join state is checked before payload shape so an anonymous client gets NotJoined.
        self._require_session(connection_id)
        try:
            request = CreateMessageRequest.model_validate(data)
        except ValidationError as e:
            raise InvalidMessage("createMessage requires a message") from e
        stored = await self.create_message(connection_id, request.message, request.name, request.timestamp)
        return stored.to_wire()

    async def _on_typing(self, connection_id: str, data: Dict[str, Any]) -> Dict[str, bool]:
        self._require_session(connection_id)
        try:
            request = TypingRequest.model_validate(data)
        except ValidationError as e:
            raise MalformedFrame("typing requires isTyping") from e
        self.typing(connection_id, request.is_typing)
        return {"isTyping": request.is_typing}

    async def _on_find_all_messages(self, connection_id: str, data: Dict[str, Any]) -> List[Dict[str, Any]]:
        self._require_connection(connection_id)
        return [message.to_wire() for message in await self.find_all_messages()]

    def _reply(self, connection_id: str, frame: Frame) -> None:
        subscription = self._connections.get(connection_id)
        if subscription is not None:
            subscription.push(frame)

    def _require_connection(self, connection_id: str) -> None:
        if connection_id not in self._connections:
            raise SessionNotFound(f"Unknown connection {connection_id}")

    def _require_session(self, connection_id: str) -> Session:
        self._require_connection(connection_id)
        session = self.registry.find(connection_id)
        if session is None:
            raise NotJoined("Join before sending messages or typing signals")
        return session

    async def shutdown(self) -> None:
        """Cancels typing timers and closes every outbound channel."""
        for session in self.registry.sessions():
            session.cancel_expiry()
        self.bus.close()
        self._connections.clear()
        logger.info("Gateway shut down.")
