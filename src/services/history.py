"""
Append-only in-memory message history.
"""

import asyncio
import logging
from typing import List

from src.core.errors import InvalidMessage
from src.core.message import Message

logger = logging.getLogger(__name__)


class HistoryLog:
    """
    Ordered store of every message created during the process lifetime.
    Sequence numbers start at 1 and follow arrival order.
    """

    def __init__(self) -> None:
        self._messages: List[Message] = []
        self._lock = asyncio.Lock()

    async def append(self, message: Message) -> Message:
        """
        Validates and appends a message.
        Returns the stored copy carrying its assigned sequence number.
        """
        if not message.sender.strip() or not message.body.strip():
            raise InvalidMessage("Message sender and body must not be empty")

        async with self._lock:
            stored = message.model_copy(update={"sequence": len(self._messages) + 1})
            self._messages.append(stored)

        logger.debug("Appended message #%d from %s", stored.sequence, stored.sender)
        return stored

    async def snapshot(self) -> List[Message]:
        """Returns all messages in append order."""
        async with self._lock:
            return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)
