# trainboard/core/schedule/errors.py
"""Domain errors of the schedule core. All of them are recoverable locally."""

from __future__ import annotations


class ScheduleError(Exception):
    """Base class for schedule core errors."""


class UnresolvableTime(ScheduleError):
    """Clock string is absent or malformed."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Cannot resolve clock value {value!r}")


class MissingWindow(ScheduleError):
    """Event has no occupancy window (no duration, canceled or no start)."""

    def __init__(self, event_id: str) -> None:
        self.event_id = event_id
        super().__init__(f"Event {event_id} has no occupancy window")


class StaleIdentity(ScheduleError):
    """Referenced event id no longer exists in the authoritative lists."""

    def __init__(self, event_id: str) -> None:
        self.event_id = event_id
        super().__init__(f"Event {event_id} no longer exists")


class PersistenceFailure(ScheduleError):
    """Persist collaborator could not write the authoritative lists."""


__all__ = [
    "ScheduleError",
    "UnresolvableTime",
    "MissingWindow",
    "StaleIdentity",
    "PersistenceFailure",
]
