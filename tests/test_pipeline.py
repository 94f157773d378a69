from datetime import date

from trainboard.core.schedule.pipeline import run_cycle
from trainboard.core.schedule.schemas import AnnouncementCategory, Event, ScheduleLists


def _lists():
    return ScheduleLists(
        recurring=[
            Event(id="commute", line="S1", destination="Böblingen", weekday="monday",
                  plan_time="08:30", actual_time="08:35", duration_minutes=40),
        ],
        ad_hoc=[
            Event(id="meeting", line="RE", destination="Ulm", date=date(2026, 10, 19),
                  plan_time="08:50", duration_minutes=30),
            Event(id="note", line="!", destination="Ticket kaufen", date=date(2026, 10, 19)),
        ],
    )


def test_cycle_with_personal_schedule(now):
    state = run_cycle(_lists(), None, now)
    assert state.selected.id == "commute"
    assert state.uses_remote_feed is False
    assert state.lanes["commute@2026-10-19"] == 0
    assert state.lanes["meeting"] == 1
    assert state.countdown.phase == "departure"
    categories = [b.category for b in state.announcements.buckets]
    assert categories[0] == AnnouncementCategory.NOTE
    assert state.timeline.start.hour == 8
    assert state.generated_at == now


def test_cycle_with_remote_feed_keeps_personal_selection(now):
    remote = [Event(line="ICE 990", destination="Berlin", plan_time="09:30", date=date(2026, 10, 19),
                    duration_minutes=5)]
    state = run_cycle(_lists(), remote, now)
    assert state.uses_remote_feed is True
    assert [e.line for e in state.display] == ["ICE 990"]
    assert state.selected.id == "commute"
    assert list(state.lanes.values()) == [0]


def test_cycle_on_empty_lists(now):
    state = run_cycle(ScheduleLists(), None, now)
    assert state.selected is None
    assert state.lanes == {} and state.conflicts == []
    assert state.announcements.total_pages == 0
    assert state.countdown is None


def test_cycle_is_repeatable(now):
    lists = _lists()
    assert run_cycle(lists, None, now, page=1) == run_cycle(lists, None, now, page=1)
