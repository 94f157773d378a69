from datetime import date, timedelta

from trainboard.core.schedule.projector import expand_recurring, project_schedule
from trainboard.core.schedule.schemas import Event, Source, Weekday


def _pattern(weekday: str, **fields) -> Event:
    return Event(weekday=weekday, line="RE5", destination="Stuttgart Hbf", plan_time="07:12", **fields)


def test_monday_pattern_materializes_once_on_next_monday():
    wednesday = date(2026, 10, 21)
    monday = _pattern("monday")
    instances = expand_recurring([monday], wednesday, 7)
    assert len(instances) == 1
    assert instances[0].date == date(2026, 10, 26)
    assert instances[0].is_recurring is True
    assert instances[0].id == monday.id


def test_monday_pattern_on_monday_is_today():
    today = date(2026, 10, 19)
    instances = expand_recurring([_pattern("monday")], today, 7)
    assert [i.date for i in instances] == [today]


def test_expansion_covers_every_weekday_in_window():
    pattern = [_pattern(day.value) for day in Weekday]
    today = date(2026, 10, 22)
    instances = expand_recurring(pattern, today, 7)
    assert sorted(i.date for i in instances) == [today + timedelta(days=n) for n in range(7)]
    for instance in instances:
        assert Weekday.from_date(instance.date) == instance.weekday


def test_pattern_without_line_is_still_projected():
    instances = expand_recurring([Event(weekday="monday", plan_time="07:00")], date(2026, 10, 19), 7)
    assert len(instances) == 1


def test_local_projection_without_remote_feed():
    ad_hoc = Event(line="S2", plan_time="12:00", date=date(2026, 10, 20))
    projected = project_schedule([_pattern("monday")], [ad_hoc], None, date(2026, 10, 19))
    assert projected.uses_remote_feed is False
    assert len(projected.display) == 2
    assert [e.id for e in projected.display] == [e.id for e in projected.personal]
    assert all(e.source == Source.LOCAL for e in projected.personal)


def test_remote_feed_replaces_display_only():
    remote = [Event(line="ICE 512", plan_time="09:41", date=date(2026, 10, 19))]
    projected = project_schedule([_pattern("monday")], [], remote, date(2026, 10, 19))
    assert projected.uses_remote_feed is True
    assert [e.line for e in projected.display] == ["ICE 512"]
    assert projected.display[0].source == Source.REMOTE
    assert [e.line for e in projected.personal] == ["RE5"]


def test_empty_remote_feed_falls_back_to_local():
    projected = project_schedule([_pattern("monday")], [], [], date(2026, 10, 19))
    assert projected.uses_remote_feed is False
    assert len(projected.display) == 1
