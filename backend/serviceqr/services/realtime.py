"""
Real-time change feed
Insert/update notifications for service requests, per restaurant channel
"""
import asyncio
import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"


@dataclass(frozen=True)
class ChangeEvent:
    """One committed row change, keyed by the record's id."""
    kind: ChangeKind
    record: Dict[str, Any]

    @property
    def record_id(self) -> Any:
        return self.record.get("id")

    def to_message(self) -> Dict[str, Any]:
        record = {
            k: (v.isoformat() if isinstance(v, datetime) else v)
            for k, v in self.record.items()
        }
        return {"kind": self.kind.value, "record": record}


def restaurant_channel(restaurant_id: int) -> str:
    return f"restaurant-{restaurant_id}"


@dataclass(eq=False)
class Subscription:
    channel: str
    queue: asyncio.Queue
    loop: asyncio.AbstractEventLoop
    delivered: int = field(default=0)

    async def get(self) -> ChangeEvent:
        return await self.queue.get()


class ChangeFeed:
    """
    Fan-out of row changes to subscribers.

    Publishers may run on any thread (sync route handlers run in the
    threadpool); each event is handed to the subscriber's own event loop.
    Events from one publisher arrive in publish order.
    """

    # Configuration
    MAX_SUBSCRIBERS_PER_CHANNEL = 1000

    def __init__(self):
        self._subscribers: Dict[str, List[Subscription]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, channel: str, loop: Optional[asyncio.AbstractEventLoop] = None) -> Optional[Subscription]:
        """Register a queue on ``channel``. Returns None when the channel is full."""
        loop = loop or asyncio.get_running_loop()
        with self._lock:
            if len(self._subscribers[channel]) >= self.MAX_SUBSCRIBERS_PER_CHANNEL:
                logger.warning(f"Subscription rejected: channel '{channel}' at capacity")
                return None
            subscription = Subscription(channel=channel, queue=asyncio.Queue(), loop=loop)
            self._subscribers[channel].append(subscription)
        logger.debug(f"Subscribed to channel '{channel}'")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.channel, [])
            if subscription in subscribers:
                subscribers.remove(subscription)
            if not subscribers:
                self._subscribers.pop(subscription.channel, None)
        logger.debug(f"Unsubscribed from channel '{subscription.channel}'")

    def publish(self, channel: str, event: ChangeEvent) -> int:
        """Deliver an event to every subscriber of ``channel``; returns the count."""
        with self._lock:
            subscribers = list(self._subscribers.get(channel, []))

        delivered = 0
        closed = []
        for subscription in subscribers:
            try:
                subscription.loop.call_soon_threadsafe(subscription.queue.put_nowait, event)
                subscription.delivered += 1
                delivered += 1
            except RuntimeError as e:
                logger.debug(f"Dropping subscriber on '{channel}': {e}")
                closed.append(subscription)

        for subscription in closed:
            self.unsubscribe(subscription)
        return delivered

    def subscriber_count(self, channel: Optional[str] = None) -> int:
        with self._lock:
            if channel:
                return len(self._subscribers.get(channel, []))
            return sum(len(subs) for subs in self._subscribers.values())


# Global change feed instance
change_feed = ChangeFeed()
