from datetime import date, datetime

import httpx
import pytest
from fastapi.testclient import TestClient

from trainboard.api.v1.board import get_now
from trainboard.api.v1.schedule import get_schedule_service
from trainboard.core.push import get_push_bus
from trainboard.core.schedule.editing import prepare_for_persist
from trainboard.core.schedule.errors import PersistenceFailure
from trainboard.core.schedule.schemas import ScheduleLists
from trainboard.core.schedule.service import ScheduleService
from trainboard.main import app

client = TestClient(app)

PAYLOAD = {
    "fixedSchedule": [
        {"id": "r1", "line": "S1", "destination": "Herrenberg", "weekday": "Monday",
         "plan_time": "10:00", "duration_minutes": 30},
    ],
    "spontaneousEntries": [
        {"id": "a1", "line": "RE5", "destination": "[ZF] Ulm", "date": "2026-10-19",
         "plan_time": "11:00", "duration_minutes": 20},
        {"id": "blank", "line": "", "date": "2026-10-19"},
    ],
}


class InMemoryScheduleService(ScheduleService):
    """Keeps the lists in memory instead of the database."""

    def __init__(self, lists: ScheduleLists | None = None, fail: bool = False) -> None:
        super().__init__()
        self.lists = lists or ScheduleLists()
        self.fail = fail

    async def load_lists(self) -> ScheduleLists:
        return self.lists

    async def save_lists(self, lists: ScheduleLists, notify: bool = True) -> ScheduleLists:
        if self.fail:
            raise PersistenceFailure("database is read-only")
        self.lists = prepare_for_persist(lists)
        if notify:
            await self.bus.publish()
        return self.lists


@pytest.fixture
def service():
    svc = InMemoryScheduleService()
    app.dependency_overrides[get_schedule_service] = lambda: svc
    app.dependency_overrides[get_now] = lambda: datetime(2026, 10, 19, 9, 0)
    yield svc
    app.dependency_overrides.clear()


def test_put_then_get_schedule(service):
    res = client.put("/v1/schedule", json=PAYLOAD)
    assert res.status_code == 200
    body = res.json()
    assert [e["id"] for e in body["recurring"]] == ["r1"]
    # запись без линии отбрасывается
    assert [e["id"] for e in body["ad_hoc"]] == ["a1"]
    assert body["recurring"][0]["weekday"] == "monday"

    res = client.get("/v1/schedule")
    assert res.status_code == 200
    assert res.json() == body


def test_put_schedule_publishes_update(service):
    client.put("/v1/schedule", json=PAYLOAD)
    assert get_push_bus().published == 1


def test_put_schedule_failure_returns_503(service):
    service.fail = True
    res = client.put("/v1/schedule", json=PAYLOAD)
    assert res.status_code == 503
    assert get_push_bus().published == 0


def test_board_selects_current_and_collects_announcements(service):
    client.put("/v1/schedule", json=PAYLOAD)
    res = client.get("/v1/board")
    assert res.status_code == 200
    board = res.json()
    assert board["selected"]["id"] == "r1"
    assert board["uses_remote_feed"] is False
    categories = [b["category"] for b in board["announcements"]["buckets"]]
    assert categories == ["additional_service"]
    assert board["announcements"]["buckets"][0]["display_destination"] == "Ulm"


def test_board_rejects_negative_page(service):
    res = client.get("/v1/board", params={"page": -1})
    assert res.status_code == 422


def test_board_event_detail(service):
    client.put("/v1/schedule", json=PAYLOAD)
    res = client.get("/v1/board/events/a1")
    assert res.status_code == 200
    assert res.json()["line"] == "RE5"

    res = client.get("/v1/board/events/nope")
    assert res.status_code == 404


def test_manual_publish():
    res = client.post("/v1/events/publish")
    assert res.status_code == 202
    assert get_push_bus().published == 1


@pytest.mark.asyncio
async def test_schedule_roundtrip_through_database(db):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        res = await ac.put("/v1/schedule", json=PAYLOAD)
        assert res.status_code == 200
        res = await ac.get("/v1/schedule")
    body = res.json()
    assert [e["id"] for e in body["ad_hoc"]] == ["a1"]
    assert body["ad_hoc"][0]["date"] == date(2026, 10, 19).isoformat()


@pytest.mark.asyncio
async def test_healthz(db):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        res = await ac.get("/healthz")
    assert res.status_code == 200
    assert res.json() == {"environment": "test", "db": "ok", "push": "memory", "feed": "noop"}
