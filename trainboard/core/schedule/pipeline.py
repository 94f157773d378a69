# trainboard/core/schedule/pipeline.py
"""
One refresh cycle: projector → selection / layout / conflicts → announcements.

Pure and re-entrant: the only output is the returned :class:`BoardState`.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from .announcements import ADDITIONAL_SERVICE_MARKER, PAGE_SIZE, aggregate
from .conflicts import find_conflicts
from .layout import assign_lanes, timeline_bounds
from .occupancy import countdown, effective_start, is_future
from .projector import DEFAULT_WINDOW_DAYS, project_lists
from .schemas import BoardState, Event, ScheduleLists
from .selection import select_current

log = logging.getLogger(__name__)


def run_cycle(
    lists: ScheduleLists,
    remote_feed: Optional[Sequence[Event]],
    now: datetime,
    page: int = 0,
    window_days: int = DEFAULT_WINDOW_DAYS,
    page_size: int = PAGE_SIZE,
    marker: str = ADDITIONAL_SERVICE_MARKER,
) -> BoardState:
    today = now.date()
    projected = project_lists(lists, remote_feed, today, window_days)

    selected = select_current(projected.personal, now)

    display = projected.display
    timed = [e for e in display if e.plan_time is not None and effective_start(e, now) is not None]
    timed.sort(key=lambda e: effective_start(e, now))
    active = [e for e in timed if not e.canceled]

    lanes = assign_lanes(active, now)
    conflicts = find_conflicts([e for e in active if is_future(e, now)], now)
    announcements = aggregate(display, now, today, page=page, page_size=page_size, marker=marker)

    state = BoardState(
        selected=selected,
        display=display,
        lanes=lanes,
        conflicts=conflicts,
        announcements=announcements,
        timeline=timeline_bounds(active, selected, now),
        countdown=countdown(selected, now),
        uses_remote_feed=projected.uses_remote_feed,
        generated_at=now,
    )
    log.info(
        "Cycle recomputed: %d displayed, selected=%s, %d lanes, %d conflicts, page %d/%d",
        len(display),
        selected.id if selected else None,
        len(lanes),
        len(conflicts),
        announcements.current_page,
        announcements.total_pages,
    )
    return state


__all__ = ["run_cycle"]
