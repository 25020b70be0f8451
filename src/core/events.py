"""Server to client events published on the broadcast bus."""

from typing import Any, Dict, List, Literal

from pydantic import BaseModel

from src.core.message import Message

Frame = Dict[str, Any]


class MessageCreated(BaseModel):
    """A message was appended to the history."""

    event: Literal["created"] = "created"
    message: Message

    def to_frame(self) -> Frame:
        return {"event": self.event, "data": self.message.to_wire()}


class TypingChanged(BaseModel):
    """
    TypingSet membership changed.
    Carries the delta (name, is_typing) and the full current set.
    """

    event: Literal["userTyping"] = "userTyping"
    name: str
    is_typing: bool
    names: List[str]

    def to_frame(self) -> Frame:
        return {
            "event": self.event,
            "data": {"name": self.name, "isTyping": self.is_typing, "names": list(self.names)},
        }


BusEvent = MessageCreated | TypingChanged
