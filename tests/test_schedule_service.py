from datetime import date, datetime

import pytest
from redis.exceptions import RedisError

from trainboard.core.push.bus import EventBus
from trainboard.core.schedule.schemas import Event, ScheduleLists, Source
from trainboard.core.schedule.service import ScheduleService
from trainboard.core.schedule.sync import RecordingPresenter

NOW = datetime(2026, 10, 19, 9, 0)


class StaticFeed:
    name = "static"

    def __init__(self, events=None):
        self.events = events
        self.stations = []

    async def fetch_departures(self, station_id):
        self.stations.append(station_id)
        return self.events


def _lists() -> ScheduleLists:
    return ScheduleLists(
        recurring=[Event(id="r1", line="S1", weekday="monday", plan_time="10:00", duration_minutes=30)],
        ad_hoc=[Event(id="a1", line="RE5", date=date(2026, 10, 19), plan_time="08:00", duration_minutes=20)],
    )


@pytest.mark.asyncio
async def test_save_lists_publishes_update(db):
    bus = EventBus()
    service = ScheduleService(feed=StaticFeed(), bus=bus)
    saved = await service.save_lists(_lists())
    assert [e.id for e in saved.recurring] == ["r1"]
    assert bus.published == 1

    await service.save_lists(_lists(), notify=False)
    assert bus.published == 1


@pytest.mark.asyncio
async def test_board_without_station_skips_feed(db):
    feed = StaticFeed([Event(line="IC", plan_time="09:30", date=date(2026, 10, 19))])
    service = ScheduleService(feed=feed, bus=EventBus())
    await service.save_lists(_lists())

    board = await service.build_board(now=NOW)
    assert feed.stations == []
    assert board.uses_remote_feed is False
    assert board.selected.id == "r1"


@pytest.mark.asyncio
async def test_remote_feed_drives_display_not_selection(db):
    feed = StaticFeed([Event(line="IC", plan_time="09:30", date=date(2026, 10, 19))])
    service = ScheduleService(feed=feed, bus=EventBus())
    await service.save_lists(_lists())

    board = await service.build_board("8000096", now=NOW)
    assert feed.stations == ["8000096"]
    assert board.uses_remote_feed is True
    assert [e.line for e in board.display] == ["IC"]
    assert board.display[0].source is Source.REMOTE
    assert board.selected.id == "r1"


@pytest.mark.asyncio
async def test_coordinator_uses_service_collaborators(db):
    service = ScheduleService(feed=StaticFeed(), bus=EventBus())
    await service.save_lists(_lists())
    presenter = RecordingPresenter()
    coordinator = service.coordinator(presenter=presenter)
    state = await coordinator.refresh()
    assert presenter.last is state
    assert {e.id for e in coordinator.lists.ad_hoc} == {"a1"}


class UnreachableBus(EventBus):
    async def publish(self, signal=None):
        raise RedisError("Connection refused")


@pytest.mark.asyncio
async def test_publish_failure_after_commit_is_not_a_save_failure(db):
    service = ScheduleService(feed=StaticFeed(), bus=UnreachableBus())
    saved = await service.save_lists(_lists())
    assert [e.id for e in saved.ad_hoc] == ["a1"]
    assert [e.id for e in (await service.load_lists()).ad_hoc] == ["a1"]
