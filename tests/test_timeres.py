from datetime import date, datetime

import pytest

from trainboard.core.schedule.errors import UnresolvableTime
from trainboard.core.schedule.timeres import parse_clock, resolve_clock


def test_resolves_on_anchor_day():
    anchor = datetime(2026, 10, 19, 9, 30, 45)
    assert resolve_clock("10:15", anchor) == datetime(2026, 10, 19, 10, 15)


def test_explicit_date_is_used_and_never_shifted():
    anchor = datetime(2026, 10, 19, 23, 0)
    resolved = resolve_clock("01:00", anchor, date(2026, 10, 19))
    assert resolved == datetime(2026, 10, 19, 1, 0)


def test_rolls_forward_when_more_than_12h_behind_anchor():
    anchor = datetime(2026, 10, 19, 23, 0)
    assert resolve_clock("01:00", anchor) == datetime(2026, 10, 20, 1, 0)


def test_no_rollover_within_12h():
    anchor = datetime(2026, 10, 19, 20, 0)
    assert resolve_clock("09:00", anchor) == datetime(2026, 10, 19, 9, 0)


@pytest.mark.parametrize("clock", [None, "", "abc", "25:00", "10:60", "1000", "10:"])
def test_unparsable_clock_resolves_to_none(clock):
    assert resolve_clock(clock, datetime(2026, 10, 19, 9, 0)) is None


def test_parse_clock_raises_unresolvable_time():
    with pytest.raises(UnresolvableTime):
        parse_clock("soon")
    assert parse_clock("7:05") == (7, 5)
