"""
In-process broadcast bus.
Each connection owns a bounded outbound queue; publishing never waits on a
recipient.
"""

import asyncio
import logging
from typing import AsyncIterator, Dict, Literal

from src.core.events import BusEvent, Frame

logger = logging.getLogger(__name__)

SlowConsumerPolicy = Literal["drop_oldest", "disconnect"]

_CLOSED = object()


class Subscription:
    """One connection's outbound channel."""

    def __init__(self, connection_id: str, maxsize: int = 256, policy: SlowConsumerPolicy = "drop_oldest"):
        self.connection_id = connection_id
        self.maxsize = maxsize
        self.policy = policy
        self.dropped = 0
        self.overflowed = False
        self.closed = False
        # One slot past maxsize is reserved for the end-of-stream marker.
        self._queue: "asyncio.Queue[object]" = asyncio.Queue(maxsize=maxsize + 1)

    def push(self, frame: Frame) -> bool:
        """
        Enqueues a frame without blocking.
        Returns False if the frame was not delivered because the subscription is closed.
        """
        if self.closed:
            return False

        if self._queue.qsize() < self.maxsize:
            self._queue.put_nowait(frame)
            return True

        if self.policy == "disconnect":
            logger.warning("Outbound queue full for %s, disconnecting slow consumer", self.connection_id)
            self.overflowed = True
            self.close()
            return False

        self._queue.get_nowait()
        self.dropped += 1
        self._queue.put_nowait(frame)
        logger.warning("Outbound queue full for %s, dropped oldest frame (%d total)", self.connection_id, self.dropped)
        return True

    def close(self) -> None:
        """Ends the stream. Frames already queued are still delivered."""
        if self.closed:
            return
        self.closed = True
        self._queue.put_nowait(_CLOSED)

    async def get(self) -> Frame | None:
        """Next frame, or None once the subscription is closed and drained."""
        item = await self._queue.get()
        if item is _CLOSED:
            return None
        return item  # type: ignore[return-value]

    def get_nowait(self) -> Frame | None:
        item = self._queue.get_nowait()
        if item is _CLOSED:
            return None
        return item  # type: ignore[return-value]

    def qsize(self) -> int:
        return self._queue.qsize()

    async def __aiter__(self) -> AsyncIterator[Frame]:
        while True:
            frame = await self.get()
            if frame is None:
                return
            yield frame


class BroadcastBus:
    """Fans events out to every subscribed connection in publish order."""

    def __init__(self, queue_size: int = 256, policy: SlowConsumerPolicy = "drop_oldest"):
        self.queue_size = queue_size
        self.policy = policy
        self._subscriptions: Dict[str, Subscription] = {}

    def subscribe(self, connection_id: str) -> Subscription:
        if connection_id in self._subscriptions:
            return self._subscriptions[connection_id]
        subscription = Subscription(connection_id, maxsize=self.queue_size, policy=self.policy)
        self._subscriptions[connection_id] = subscription
        return subscription

    def unsubscribe(self, connection_id: str) -> None:
        subscription = self._subscriptions.pop(connection_id, None)
        if subscription is not None:
            subscription.close()

    def publish(self, event: BusEvent) -> int:
        """
        Delivers the event to every subscription.
        Returns the number of subscriptions it was queued on.
        """
        frame = event.to_frame()
        delivered = 0

        for connection_id, subscription in list(self._subscriptions.items()):
            if subscription.push(frame):
                delivered += 1
            elif subscription.overflowed:
                self._subscriptions.pop(connection_id, None)

        return delivered

    def close(self) -> None:
        for subscription in self._subscriptions.values():
            subscription.close()
        self._subscriptions.clear()

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._subscriptions

    def __len__(self) -> int:
        return len(self._subscriptions)
