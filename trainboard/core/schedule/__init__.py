"""
Schedule core package.

Чистые функции (timeres, occupancy, projector, selection, layout,
conflicts, announcements, editing, pipeline) и единственный stateful
компонент ``LiveSyncCoordinator`` (sync.py).

ORM, store и service импортируются напрямую по модулю (требуют БД).
"""
from __future__ import annotations

from .announcements import aggregate, paginate
from .conflicts import find_conflicts, find_replacement_services
from .errors import (
    MissingWindow,
    PersistenceFailure,
    ScheduleError,
    StaleIdentity,
    UnresolvableTime,
)
from .layout import assign_lanes, timeline_bounds
from .occupancy import (
    delay_minutes,
    effective_start,
    is_currently_occupying,
    is_future,
    occupancy_end,
)
from .pipeline import run_cycle
from .projector import expand_recurring, project_schedule
from .schemas import (
    AnnouncementBucket,
    AnnouncementCategory,
    BoardState,
    ConflictKind,
    ConflictPair,
    Event,
    ScheduleLists,
    Source,
    Weekday,
)
from .selection import select_current
from .sync import LiveSyncCoordinator, SyncState
from .timeres import resolve_clock

__all__: list[str] = [
    "aggregate",
    "paginate",
    "find_conflicts",
    "find_replacement_services",
    "MissingWindow",
    "PersistenceFailure",
    "ScheduleError",
    "StaleIdentity",
    "UnresolvableTime",
    "assign_lanes",
    "timeline_bounds",
    "delay_minutes",
    "effective_start",
    "is_currently_occupying",
    "is_future",
    "occupancy_end",
    "run_cycle",
    "expand_recurring",
    "project_schedule",
    "AnnouncementBucket",
    "AnnouncementCategory",
    "BoardState",
    "ConflictKind",
    "ConflictPair",
    "Event",
    "ScheduleLists",
    "Source",
    "Weekday",
    "select_current",
    "LiveSyncCoordinator",
    "SyncState",
    "resolve_clock",
]
