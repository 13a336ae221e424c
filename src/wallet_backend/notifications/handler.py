"""EventHandler — fan out wallet events to subscriber queues.

Thread-safe: the synchronizer notifies from its background thread while
subscribers read from theirs.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wallet_backend.notifications.events import RawEvent

logger = logging.getLogger(__name__)

_DEFAULT_BUFFER = 100


class EventHandler:
    """Event sink shared by the wallet and its synchronizer.

    Usage::

        events = EventHandler()
        q = events.add_subscriber("ui")
        events.notify(SyncProgressEvent(local_height=10, network_height=20))
        event = q.get(timeout=1)
    """

    def __init__(self, *, buffer: int = _DEFAULT_BUFFER) -> None:
        self._buffer = buffer
        self._subscribers: dict[str, queue.Queue[RawEvent]] = {}
        self._lock = threading.Lock()

    def add_subscriber(self, key: str, *, buffer: int | None = None) -> queue.Queue[RawEvent]:
        """Register a subscriber and return its output queue."""
        q: queue.Queue[RawEvent] = queue.Queue(maxsize=buffer or self._buffer)
        with self._lock:
            self._subscribers[key] = q
        return q

    def remove_subscriber(self, key: str) -> None:
        """Unregister a subscriber."""
        with self._lock:
            self._subscribers.pop(key, None)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def notify(self, event: RawEvent) -> None:
        """Deliver *event* to every subscriber without blocking."""
        with self._lock:
            subscribers = list(self._subscribers.items())
        for key, q in subscribers:
            try:
                q.put_nowait(event)
            except queue.Full:
                logger.warning("Subscriber %s queue full, dropping event %s", key, event.type)
