# trainboard/core/schedule/service.py

"""Service-layer: wires the pure core to the store, the feed and the push bus."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from trainboard.config import settings
from trainboard.core.feeds import BaseFeedProvider, get_feed_provider
from trainboard.core.push import EventBus, get_push_bus
from trainboard.db.base import async_session_context

from .editing import prepare_for_persist
from .errors import PersistenceFailure
from .pipeline import run_cycle
from .schemas import BoardInputs, BoardState, ScheduleLists
from .store import ScheduleStore
from .sync import BoardPresenter, LiveSyncCoordinator

log = logging.getLogger(__name__)


def local_now() -> datetime:
    """Naive wall-clock reading in the board's timezone."""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)


class ScheduleService:
    """
    Collaborators of the board: fetch (store + live feed), persist (store),
    push (event bus). Each call opens its own DB session.
    """

    def __init__(
        self,
        feed: Optional[BaseFeedProvider] = None,
        bus: Optional[EventBus] = None,
    ) -> None:
        self.feed = feed or get_feed_provider()
        self.bus = bus or get_push_bus()

    # ------------------------------------------------------------------ #
    #                       Public business-methods                      #
    # ------------------------------------------------------------------ #
    async def load_lists(self) -> ScheduleLists:
        async with async_session_context() as session:
            return await ScheduleStore(session).load_lists()

    async def save_lists(self, lists: ScheduleLists, notify: bool = True) -> ScheduleLists:
        """
        Persist the full lists and publish an update signal.

        Raises:
            PersistenceFailure: write or commit failed.
        """
        payload = prepare_for_persist(lists)
        try:
            async with async_session_context() as session:
                await ScheduleStore(session).save_lists(payload)
        except SQLAlchemyError as exc:
            # commit упал уже после flush
            raise PersistenceFailure(f"Commit of schedule lists failed: {exc}") from exc
        if notify:
            try:
                await self.bus.publish()
            except RedisError:
                # запись уже закоммичена, доски подтянут её по таймеру
                log.exception("Schedule saved but update signal was not published")
        return payload

    async def fetch_inputs(self, station_id: Optional[str] = None) -> BoardInputs:
        lists = await self.load_lists()
        remote_feed = None
        if station_id:
            remote_feed = await self.feed.fetch_departures(station_id)
        return BoardInputs(lists=lists, remote_feed=remote_feed)

    async def build_board(
        self,
        station_id: Optional[str] = None,
        page: int = 0,
        now: Optional[datetime] = None,
    ) -> BoardState:
        inputs = await self.fetch_inputs(station_id)
        return run_cycle(
            inputs.lists,
            inputs.remote_feed,
            now or local_now(),
            page=page,
            window_days=settings.WINDOW_DAYS,
            page_size=settings.PAGE_SIZE,
            marker=settings.ADDITIONAL_SERVICE_MARKER,
        )

    def coordinator(
        self,
        station_id: Optional[str] = None,
        presenter: Optional[BoardPresenter] = None,
    ) -> LiveSyncCoordinator:
        """Session coordinator bound to this service's collaborators."""

        async def fetch() -> BoardInputs:
            return await self.fetch_inputs(station_id)

        async def persist(lists: ScheduleLists) -> None:
            await self.save_lists(lists)

        return LiveSyncCoordinator(
            fetch,
            persist,
            presenter,
            clock=local_now,
            window_days=settings.WINDOW_DAYS,
            page_size=settings.PAGE_SIZE,
            marker=settings.ADDITIONAL_SERVICE_MARKER,
            debounce_seconds=settings.EDIT_DEBOUNCE_SECONDS,
            blur_grace_seconds=settings.BLUR_GRACE_SECONDS,
            refresh_interval_seconds=settings.REFRESH_INTERVAL_SECONDS,
            rotation_seconds=settings.PAGE_ROTATION_SECONDS,
        )


__all__ = ["local_now", "ScheduleService"]
