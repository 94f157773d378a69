from trainboard.core.schedule.selection import select_current


def test_empty_list_selects_nothing(now):
    assert select_current([], now) is None


def test_single_future_event_is_selected(make_event, now):
    event = make_event(plan_time="11:00")
    assert select_current([event], now) is event


def test_latest_occupying_event_wins(make_event, now):
    early = make_event(plan_time="08:00", actual_time="08:00", duration_minutes=120)
    late = make_event(plan_time="08:30", actual_time="08:30", duration_minutes=60)
    upcoming = make_event(plan_time="09:10")
    assert select_current([late, upcoming, early], now) is late


def test_earliest_upcoming_when_nothing_occupies(make_event, now):
    later = make_event(plan_time="12:00")
    sooner = make_event(plan_time="10:00")
    past = make_event(plan_time="07:00")
    note = make_event(plan_time=None)
    assert select_current([later, past, note, sooner], now) is sooner


def test_plan_only_running_event_is_not_occupying(make_event, now):
    running_unconfirmed = make_event(plan_time="08:30", duration_minutes=120)
    next_one = make_event(plan_time="10:00")
    assert select_current([running_unconfirmed, next_one], now) is next_one
