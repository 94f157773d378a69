"""
Push subsystem: zero-payload "something changed" signals.

• ``EventBus`` – in-process hub (один процесс API).
• ``RedisEventBus`` – hub через Redis pub/sub (API + Celery worker).
• ``get_push_bus()`` – singleton по ``settings.PUSH_BACKEND``.
"""
from __future__ import annotations

import logging

from trainboard.config import settings
from .bus import UPDATE, EventBus, PushSignal

log = logging.getLogger(__name__)

_bus: EventBus | None = None


def get_push_bus() -> EventBus:
    """Get or create the process-wide push bus."""
    global _bus
    if _bus is None:
        backend = settings.PUSH_BACKEND.lower()
        if backend == "redis":
            from .redis_bus import RedisEventBus

            _bus = RedisEventBus()
        elif backend == "memory":
            _bus = EventBus()
        else:
            raise ValueError(f"Unknown push backend: {backend}")
        log.info("Push bus initialized (%s)", backend)
    return _bus


def reset_push_bus() -> None:
    global _bus
    _bus = None


__all__: list[str] = ["EventBus", "PushSignal", "UPDATE", "get_push_bus", "reset_push_bus"]
