"""Ordered in-process events bus for chart session updates.

Callbacks run synchronously, in subscription order, as soon as an event is
published. Queue subscribers (async consumers such as a push feed) receive the same
payloads through bounded asyncio queues that drop the oldest entry when full.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, List

TRENDLINES_CHANGED = "trendlines"
COORDINATE_DISPLAY = "coordinate"
DRAWING_STATE = "drawing"
CANDLES_UPDATED = "candles"
LAST_UPDATE = "last_update"

Callback = Callable[[Any], None]

logger = logging.getLogger(__name__)


def _safe_put(queue: asyncio.Queue, payload: Dict[str, Any]) -> None:
    try:
        queue.put_nowait(payload)
    except asyncio.QueueFull:
        try:
            queue.get_nowait()
        except asyncio.QueueEmpty:
            pass
        try:
            queue.put_nowait(payload)
        except asyncio.QueueFull:
            logger.warning("Dropping event for slow subscriber: %s", payload.get("type"))


class EventBus:
    def __init__(self) -> None:
        self._callbacks: Dict[str, List[Callback]] = {}
        self._queues: List[asyncio.Queue] = []

    def subscribe(self, topic: str, callback: Callback) -> Callable[[], None]:
        """Register ``callback`` for ``topic``; returns a function that unregisters it."""
        self._callbacks.setdefault(topic, []).append(callback)

        def _unsubscribe() -> None:
            self.unsubscribe(topic, callback)

        return _unsubscribe

    def unsubscribe(self, topic: str, callback: Callback) -> None:
        callbacks = self._callbacks.get(topic, [])
        if callback in callbacks:
            callbacks.remove(callback)
        if not callbacks and topic in self._callbacks:
            self._callbacks.pop(topic, None)

    def open_queue(self, maxsize: int = 256) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._queues.append(queue)
        return queue

    def close_queue(self, queue: asyncio.Queue) -> None:
        if queue in self._queues:
            self._queues.remove(queue)

    def publish(self, topic: str, value: Any, payload: Any = None) -> None:
        """Deliver ``value`` to callbacks and ``payload`` (or ``value``) to queue subscribers."""
        for callback in list(self._callbacks.get(topic, [])):
            callback(value)
        if not self._queues:
            return
        message = {"type": topic, "data": value if payload is None else payload}
        for queue in list(self._queues):
            _safe_put(queue, message)
