"""In-process publish/subscribe channel for live dashboard updates.

The bus is an explicit object owned by the application (``app.state.event_bus``)
and injected into handlers, so tests can use a private instance. Delivery is
best-effort and nothing is persisted.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from portal.core.config import constants


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortalEvent:
    """A single event delivered to subscribers."""

    type: str
    data: dict[str, Any]
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    def to_sse(self) -> str:
        """Render the event as a Server-Sent Events frame."""
        payload = json.dumps({"type": self.type, "data": self.data, "timestamp": self.timestamp}, default=str)
        return f"event: {self.type}\ndata: {payload}\n\n"


class EventBus:
    """Fan-out of events to any number of bounded subscriber queues."""

    def __init__(self, *, queue_maxsize: int = constants.EVENT_QUEUE_MAXSIZE) -> None:
        self._queue_maxsize = queue_maxsize
        self._subscribers: set[asyncio.Queue[PortalEvent]] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue[PortalEvent]:
        """Register a new subscriber and return its queue."""
        queue: asyncio.Queue[PortalEvent] = asyncio.Queue(maxsize=self._queue_maxsize)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[PortalEvent]) -> None:
        """Remove a subscriber; unknown queues are ignored."""
        self._subscribers.discard(queue)

    def publish(self, event_type: str, data: dict[str, Any]) -> int:
        """Deliver an event to every subscriber with room in its queue.

        Returns:
            Number of subscribers the event was delivered to
        """
        event = PortalEvent(type=event_type, data=data)
        delivered = 0
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning("Dropped event for slow subscriber", extra={"event_type": event_type})
        return delivered
