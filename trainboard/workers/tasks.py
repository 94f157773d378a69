# trainboard/workers/tasks.py

from __future__ import annotations

import asyncio
import hashlib
import json
from typing import List, Optional

from celery import Celery
from celery.utils.log import get_task_logger
from redis import Redis

from trainboard.config import settings
from trainboard.core.feeds import get_feed_provider
from trainboard.core.push.redis_bus import publish_update_sync
from trainboard.core.schedule.schemas import Event

log = get_task_logger(__name__)

FINGERPRINT_KEY = "trainboard:feed-fingerprint:{station}"

celery_app = Celery(
    "trainboard",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=['trainboard.workers.tasks'],
    task_serializer='json',
    result_serializer='json',
    accept_content=['json']
)
celery_app.conf.update(
    task_track_started=True,
    timezone='UTC',
    broker_connection_retry_on_startup=True,
)
if settings.DEFAULT_STATION:
    celery_app.conf.beat_schedule = {
        "poll-remote-feed": {
            "task": "trainboard.workers.tasks.poll_remote_feed_task",
            "schedule": settings.REFRESH_INTERVAL_SECONDS,
            "args": (settings.DEFAULT_STATION,),
        },
    }


def feed_fingerprint(events: Optional[List[Event]]) -> str:
    """SHA-256 of the canonical JSON of the feed (ids excluded, they are per-fetch)."""
    canonical = [
        event.model_dump(mode="json", exclude={"id"}) for event in (events or [])
    ]
    blob = json.dumps(canonical, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(blob.encode("utf-8")).hexdigest()


# --- Внутренняя асинхронная логика для задачи ---
async def _fetch_feed(station_id: str) -> Optional[List[Event]]:
    return await get_feed_provider().fetch_departures(station_id)


def _run_poll_logic(task_id: str, station_id: str) -> str:
    log.info("[poll %s] Polling remote feed for station %s", task_id, station_id)
    events = asyncio.run(_fetch_feed(station_id))
    if events is None:
        log.warning("[poll %s] Feed unavailable for station %s", task_id, station_id)
        return "UNAVAILABLE"

    fingerprint = feed_fingerprint(events)
    client = Redis.from_url(settings.REDIS_URL, socket_connect_timeout=2)
    try:
        key = FINGERPRINT_KEY.format(station=station_id)
        previous = client.getset(key, fingerprint)
    finally:
        client.close()

    if previous is not None and previous.decode() == fingerprint:
        log.debug("[poll %s] Feed unchanged for station %s", task_id, station_id)
        return "UNCHANGED"

    publish_update_sync()
    log.info("[poll %s] Feed changed for station %s (%d events), update published", task_id, station_id, len(events))
    return "CHANGED"


@celery_app.task(
    name="trainboard.workers.tasks.poll_remote_feed_task",
    bind=True,
    autoretry_for=(Exception,),
    retry_kwargs={'max_retries': 3},
    retry_backoff=True,
    retry_backoff_max=60 * 5,
    retry_jitter=True
)
def poll_remote_feed_task(self, station_id: str) -> str:
    """Celery задача: опрос живого фида и push-сигнал при изменении."""
    return _run_poll_logic(self.request.id or "eager", station_id)


__all__ = ["celery_app", "poll_remote_feed_task", "feed_fingerprint"]
