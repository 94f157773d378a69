from datetime import date

import pytest
from celery import states

from trainboard.core.schedule.schemas import Event
from trainboard.workers import tasks
from trainboard.workers.tasks import celery_app, feed_fingerprint, poll_remote_feed_task


class FakeRedis:
    store: dict = {}

    @classmethod
    def from_url(cls, url, **kwargs):
        return cls()

    def getset(self, key, value):
        previous = self.store.get(key)
        self.store[key] = value.encode()
        return previous

    def close(self):
        pass


class StaticFeed:
    name = "static"

    def __init__(self, events):
        self.events = events

    async def fetch_departures(self, station_id):
        return self.events


@pytest.fixture(autouse=True)
def celery_eager():
    celery_app.conf.task_always_eager = True
    yield
    celery_app.conf.task_always_eager = False


@pytest.fixture
def published(monkeypatch):
    calls = []
    FakeRedis.store = {}
    monkeypatch.setattr(tasks, "Redis", FakeRedis)
    monkeypatch.setattr(tasks, "publish_update_sync", lambda: calls.append("update") or 1)
    return calls


def _feed(*lines):
    return [Event(line=line, destination="Stuttgart Hbf", plan_time="10:00", date=date(2026, 10, 19))
            for line in lines]


def test_fingerprint_ignores_ids():
    first = _feed("S1", "S2")
    second = [e.model_copy(update={"id": "other-" + e.id}) for e in first]
    assert feed_fingerprint(first) == feed_fingerprint(second)
    assert feed_fingerprint(first) != feed_fingerprint(_feed("S1"))


def test_poll_task_publishes_only_on_change(monkeypatch, published):
    feed = StaticFeed(_feed("S1"))
    monkeypatch.setattr(tasks, "get_feed_provider", lambda: feed)

    result = poll_remote_feed_task.delay("8000096")
    assert result.status == states.SUCCESS
    assert result.result == "CHANGED"
    assert poll_remote_feed_task.delay("8000096").result == "UNCHANGED"

    feed.events = _feed("S1", "S3")
    assert poll_remote_feed_task.delay("8000096").result == "CHANGED"
    assert published == ["update", "update"]


def test_poll_task_unavailable_feed(monkeypatch, published):
    monkeypatch.setattr(tasks, "get_feed_provider", lambda: StaticFeed(None))
    result = poll_remote_feed_task.delay("8000096")
    assert result.result == "UNAVAILABLE"
    assert published == []
