# trainboard/core/push/bus.py
"""
In-process push hub: fan-out of zero-payload "update" signals to SSE subscribers.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime

log = logging.getLogger(__name__)

UPDATE = "update"


@dataclass
class PushSignal:
    """Сигнал «что-то изменилось». Полезной нагрузки нет."""

    event_type: str = UPDATE
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_sse(self) -> str:
        return f"id: {self.id}\nevent: {self.event_type}\ndata: {{}}\n\n"


class EventBus:
    """Manages signal broadcasting to multiple subscribers."""

    def __init__(self, max_queue: int = 100) -> None:
        self._subscribers: set[asyncio.Queue] = set()
        self._max_queue = max_queue
        self._lock = asyncio.Lock()
        self.published = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue)
        async with self._lock:
            self._subscribers.add(queue)
        log.debug("Push subscriber added (%d total)", len(self._subscribers))
        return queue

    async def unsubscribe(self, queue: asyncio.Queue) -> None:
        async with self._lock:
            self._subscribers.discard(queue)
        log.debug("Push subscriber removed (%d left)", len(self._subscribers))

    async def publish(self, signal: PushSignal | None = None) -> None:
        """Publish a signal to all local subscribers."""
        await self._fan_out(signal or PushSignal())

    async def _fan_out(self, signal: PushSignal) -> None:
        async with self._lock:
            self.published += 1
            dead = []
            for queue in self._subscribers:
                try:
                    queue.put_nowait(signal)
                except asyncio.QueueFull:
                    log.warning("Push queue full, dropping subscriber")
                    dead.append(queue)
            for queue in dead:
                self._subscribers.discard(queue)
        log.info("Push signal %s delivered to %d subscribers", signal.event_type, len(self._subscribers))

    async def close(self) -> None:
        async with self._lock:
            self._subscribers.clear()


__all__ = ["UPDATE", "PushSignal", "EventBus"]
