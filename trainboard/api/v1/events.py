# trainboard/api/v1/events.py
"""
Server-Sent Events: zero-payload ``update`` signals for live boards.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, status
from fastapi.responses import StreamingResponse

from trainboard.core.push import EventBus, PushSignal, get_push_bus

router = APIRouter(prefix="/v1", tags=["push"])
log = logging.getLogger(__name__)

HEARTBEAT_SECONDS = 30.0


async def signal_stream(
    queue: asyncio.Queue,
    bus: EventBus,
    heartbeat_seconds: float = HEARTBEAT_SECONDS,
) -> AsyncGenerator[str, None]:
    """Yield SSE frames from the queue, with a keep-alive comment when idle."""
    try:
        while True:
            try:
                signal: PushSignal = await asyncio.wait_for(queue.get(), timeout=heartbeat_seconds)
            except asyncio.TimeoutError:
                yield ": keep-alive\n\n"
                continue
            yield signal.to_sse()
    finally:
        await bus.unsubscribe(queue)
        log.debug("SSE stream closed")


@router.get("/events")
async def stream_events() -> StreamingResponse:
    bus = get_push_bus()
    queue = await bus.subscribe()
    return StreamingResponse(
        signal_stream(queue, bus),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
            "Connection": "keep-alive",
        },
    )


@router.post("/events/publish", status_code=status.HTTP_202_ACCEPTED)
async def publish_update():
    """Manually notify boards that something changed."""
    await get_push_bus().publish()
    return {"status": "accepted"}
