# trainboard/core/feeds/http.py

from __future__ import annotations

import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from trainboard.config import settings
from trainboard.core.schedule.schemas import Event, Source

from .base import BaseFeedProvider

log = logging.getLogger(__name__)


class HttpFeedProvider(BaseFeedProvider):
    """
    Live departures over HTTP: ``GET {FEED_URL}?eva=<station>`` → ``{"trains": [...]}``.

    Records use the board's field names (``linie``, ``ziel``, ``plan``, …)
    and are normalized into :class:`Event` with ``source=remote``.
    """

    name: str = "http"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url or settings.FEED_URL
        self.timeout = timeout or settings.FEED_TIMEOUT_SECONDS
        self._transport = transport
        if not self.base_url:
            log.warning("HttpFeedProvider configured without FEED_URL; feed will be empty")

    async def fetch_departures(self, station_id: str) -> Optional[List[Event]]:
        if not self.base_url:
            return None
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.base_url, params={"eva": station_id})
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            log.error("Feed HTTP error for station %s: %s", station_id, exc)
            return None
        except httpx.RequestError as exc:
            log.error("Feed request error for station %s: %s", station_id, exc)
            return None
        except ValueError as exc:
            log.error("Feed returned invalid JSON for station %s: %s", station_id, exc)
            return None

        records = payload.get("trains") if isinstance(payload, dict) else None
        if not isinstance(records, list):
            log.warning("Feed payload for station %s has no 'trains' list", station_id)
            return None

        events: List[Event] = []
        for record in records:
            try:
                event = Event.model_validate(record)
            except ValidationError as exc:
                log.debug("Skipping malformed feed record %r: %s", record, exc)
                continue
            events.append(event.model_copy(update={"source": Source.REMOTE}))
        log.info("Feed for station %s: %d events", station_id, len(events))
        return events

    async def ping(self) -> bool:
        if not self.base_url:
            return False
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.head(self.base_url)
            return response.status_code < 500
        except httpx.RequestError as exc:
            log.warning("Feed ping failed: %s", exc)
            return False


__all__ = ["HttpFeedProvider"]
