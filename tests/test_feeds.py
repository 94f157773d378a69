import httpx
import pytest

from trainboard.core.feeds import get_feed_provider
from trainboard.core.feeds.http import HttpFeedProvider
from trainboard.core.feeds.noop import NoOpFeedProvider
from trainboard.core.schedule.schemas import Source

FEED_URL = "https://feed.example/departures"


def _provider(handler) -> HttpFeedProvider:
    return HttpFeedProvider(base_url=FEED_URL, timeout=1.0, transport=httpx.MockTransport(handler))


def test_registry_returns_noop_by_default():
    provider = get_feed_provider()
    assert isinstance(provider, NoOpFeedProvider)
    assert provider.name == "noop"


def test_registry_unknown_provider():
    with pytest.raises(ValueError):
        get_feed_provider("teletext")


@pytest.mark.asyncio
async def test_noop_has_no_feed():
    assert await NoOpFeedProvider().fetch_departures("8000096") is None


@pytest.mark.asyncio
async def test_http_feed_normalizes_records():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["eva"] = request.url.params.get("eva")
        return httpx.Response(200, json={"trains": [
            {"linie": "S1", "ziel": "Kirchheim", "plan": "10:05", "actual": "10:09",
             "date": "2026-10-19T00:00:00", "source": "db-api"},
            "not a record",
        ]})

    events = await _provider(handler).fetch_departures("8000096")
    assert seen["eva"] == "8000096"
    assert [e.line for e in events] == ["S1"]
    assert events[0].destination == "Kirchheim"
    assert events[0].actual_time == "10:09"
    assert events[0].source is Source.REMOTE


@pytest.mark.asyncio
async def test_http_feed_server_error_is_absent_feed():
    provider = _provider(lambda request: httpx.Response(500))
    assert await provider.fetch_departures("8000096") is None


@pytest.mark.asyncio
async def test_http_feed_invalid_json_is_absent_feed():
    provider = _provider(lambda request: httpx.Response(200, content=b"<html>"))
    assert await provider.fetch_departures("8000096") is None


@pytest.mark.asyncio
async def test_http_feed_without_trains_is_absent_feed():
    provider = _provider(lambda request: httpx.Response(200, json={"departures": []}))
    assert await provider.fetch_departures("8000096") is None


@pytest.mark.asyncio
async def test_http_feed_connection_error_is_absent_feed():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    provider = _provider(handler)
    assert await provider.fetch_departures("8000096") is None
    assert await provider.ping() is False
