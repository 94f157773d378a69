# trainboard/core/schedule/occupancy.py
"""
Occupancy model: effective start, occupancy end and the derived predicates.

An occupancy window is ``[start, end)``; ``end`` exists only for
non-canceled events with a resolvable start and a positive duration.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Tuple

from .errors import MissingWindow
from .schemas import Countdown, Event
from .timeres import resolve_clock


Window = Tuple[datetime, datetime]


def effective_start(event: Event, now: datetime) -> Optional[datetime]:
    return resolve_clock(event.actual_time or event.plan_time, now, event.date)


def occupancy_end(event: Event, now: datetime) -> Optional[datetime]:
    if event.canceled or event.duration_minutes <= 0:
        return None
    start = effective_start(event, now)
    if start is None:
        return None
    return start + timedelta(minutes=event.duration_minutes)


def occupancy_window(event: Event, now: datetime) -> Optional[Window]:
    end = occupancy_end(event, now)
    if end is None:
        return None
    # end != None гарантирует, что start разрешился
    return effective_start(event, now), end


def require_window(event: Event, now: datetime) -> Window:
    """Same as :func:`occupancy_window`, raising :class:`MissingWindow` instead of returning ``None``."""
    window = occupancy_window(event, now)
    if window is None:
        raise MissingWindow(event.id)
    return window


def nominal_window(event: Event, now: datetime) -> Optional[Window]:
    """
    Window an event would occupy ignoring its ``canceled`` flag.

    Used for canceled events in the replacement-service relation.
    """
    if event.duration_minutes <= 0:
        return None
    start = effective_start(event, now)
    if start is None:
        return None
    return start, start + timedelta(minutes=event.duration_minutes)


def windows_intersect(first: Window, second: Window) -> bool:
    return first[0] < second[1] and first[1] > second[0]


def is_currently_occupying(event: Event, now: datetime) -> bool:
    # Только подтверждённое фактическое время делает событие «текущим»
    if event.actual_time is None:
        return False
    end = occupancy_end(event, now)
    if end is None:
        return False
    start = resolve_clock(event.actual_time, now, event.date)
    return start is not None and start <= now < end


def delay_minutes(event: Event, now: datetime) -> int:
    if event.plan_time is None or event.actual_time is None:
        return 0
    planned = resolve_clock(event.plan_time, now, event.date)
    actual = resolve_clock(event.actual_time, now, event.date)
    if planned is None or actual is None:
        return 0
    return round((actual - planned).total_seconds() / 60)


def is_future(event: Event, now: datetime) -> bool:
    start = effective_start(event, now)
    if event.canceled:
        return start is not None and start > now
    if is_currently_occupying(event, now):
        return True
    return start is not None and start > now


def countdown(event: Optional[Event], now: datetime) -> Optional[Countdown]:
    """Seconds until the selected event's next boundary (end while occupying, else start)."""
    if event is None or event.canceled:
        return None
    if is_currently_occupying(event, now):
        target = occupancy_end(event, now)
        phase = "departure"
    else:
        target = effective_start(event, now)
        phase = "arrival"
    if target is None:
        return None
    seconds = max(int((target - now).total_seconds()), 0)
    return Countdown(phase=phase, target=target, seconds=seconds)


__all__ = [
    "Window",
    "effective_start",
    "occupancy_end",
    "occupancy_window",
    "require_window",
    "nominal_window",
    "windows_intersect",
    "is_currently_occupying",
    "delay_minutes",
    "is_future",
    "countdown",
]
