# trainboard/core/push/redis_bus.py

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from redis import Redis
from redis import asyncio as aioredis
from redis.exceptions import RedisError

from trainboard.config import settings

from .bus import UPDATE, EventBus, PushSignal

log = logging.getLogger(__name__)


class RedisEventBus(EventBus):
    """
    Push hub across processes: signals go through a Redis pub/sub channel
    and are fanned out locally by a single listener task.
    """

    def __init__(self, url: Optional[str] = None, channel: Optional[str] = None) -> None:
        super().__init__()
        self.url = url or settings.REDIS_URL
        self.channel = channel or settings.PUSH_CHANNEL
        self._client: Optional[aioredis.Redis] = None
        self._listener: Optional[asyncio.Task] = None

    def _redis(self) -> aioredis.Redis:
        if self._client is None:
            self._client = aioredis.from_url(self.url)
        return self._client

    async def subscribe(self) -> asyncio.Queue:
        queue = await super().subscribe()
        if self._listener is None or self._listener.done():
            self._listener = asyncio.create_task(self._listen())
        return queue

    async def publish(self, signal: PushSignal | None = None) -> None:
        signal = signal or PushSignal()
        await self._redis().publish(self.channel, signal.event_type)
        log.debug("Published %s to redis channel %s", signal.event_type, self.channel)

    async def _listen(self) -> None:
        pubsub = self._redis().pubsub()
        await pubsub.subscribe(self.channel)
        log.info("Listening for push signals on %s", self.channel)
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                data = message.get("data")
                event_type = data.decode() if isinstance(data, bytes) else str(data or UPDATE)
                await self._fan_out(PushSignal(event_type=event_type))
        finally:
            await pubsub.unsubscribe(self.channel)
            await pubsub.close()

    async def ping(self) -> bool:
        return bool(await self._redis().ping())

    async def close(self) -> None:
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            self._listener = None
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        await super().close()


def publish_update_sync(reason: str = UPDATE, url: Optional[str] = None, channel: Optional[str] = None) -> int:
    """Blocking publish for Celery workers. Returns the number of receivers."""
    client = Redis.from_url(url or settings.REDIS_URL, socket_connect_timeout=2)
    try:
        receivers = client.publish(channel or settings.PUSH_CHANNEL, reason)
    except RedisError:
        log.exception("Publishing push signal to redis failed")
        raise
    finally:
        client.close()
    log.info("Push signal %s published to %d receivers", reason, receivers)
    return receivers


__all__ = ["RedisEventBus", "publish_update_sync"]
