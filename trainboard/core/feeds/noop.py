# trainboard/core/feeds/noop.py

from __future__ import annotations

import logging
from typing import List, Optional

from trainboard.core.schedule.schemas import Event

from .base import BaseFeedProvider

log = logging.getLogger(__name__)


class NoOpFeedProvider(BaseFeedProvider):
    """
    Заглушка: живого фида нет, табло всегда показывает личное расписание.
    """

    name: str = "noop"

    def __init__(self) -> None:
        log.info("Initialized NoOpFeedProvider")

    async def fetch_departures(self, station_id: str) -> Optional[List[Event]]:
        log.debug("NoOp: no live feed for station %s", station_id)
        return None


__all__ = ["NoOpFeedProvider"]
