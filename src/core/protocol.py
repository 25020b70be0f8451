"""Client to server frame schemas for the WebSocket protocol."""

from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class ClientFrame(BaseModel):
    """Envelope of every inbound frame."""

    event: str
    data: Dict[str, Any] = Field(default_factory=dict)
    id: int | str | None = None


class JoinRequest(BaseModel):
    """Payload of ``join``."""

    name: str


class CreateMessageRequest(BaseModel):
    """
    Payload of ``createMessage``.
    ``name`` is accepted for compatibility but the sender always comes from the session.
    """

    name: str | None = None
    message: str
    timestamp: datetime | None = None


class TypingRequest(BaseModel):
    """Payload of ``typing``."""

    model_config = ConfigDict(populate_by_name=True)

    is_typing: bool = Field(alias="isTyping")
