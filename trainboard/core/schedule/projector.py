# trainboard/core/schedule/projector.py
"""
Schedule projection: weekly pattern × rolling window + ad-hoc entries,
with the remote live feed taking over the display set when present.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence

from .schemas import Event, ProjectedSchedule, ScheduleLists, Source, Weekday

log = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 7


def expand_recurring(
    pattern: Iterable[Event],
    today: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> List[Event]:
    """
    Materialize the weekly pattern for ``window_days`` days starting today.

    Every instance keeps the pattern ``id``; it is stamped with a concrete
    ``date`` and ``is_recurring=True``.
    """
    pattern = list(pattern)
    instances: List[Event] = []
    for offset in range(window_days):
        day = today + timedelta(days=offset)
        weekday = Weekday.from_date(day)
        for entry in pattern:
            if entry.weekday != weekday:
                continue
            instances.append(
                entry.model_copy(
                    update={"date": day, "is_recurring": True, "source": Source.LOCAL}
                )
            )
    return instances


def project_schedule(
    recurring: Sequence[Event],
    ad_hoc: Sequence[Event],
    remote_feed: Optional[Sequence[Event]],
    today: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> ProjectedSchedule:
    """
    Build the per-render projected set.

    Args:
        recurring: weekly pattern entries (weekday-keyed).
        ad_hoc: one-off entries, each with an explicit date.
        remote_feed: live feed records or ``None`` when not requested/failed.
        today: first day of the window.
        window_days: number of consecutive days to expand.

    Returns:
        ProjectedSchedule: ``personal`` is always the local projection;
        ``display`` is the remote feed alone when it is non-empty.
    """
    personal = expand_recurring(recurring, today, window_days)
    personal.extend(entry.model_copy(update={"source": Source.LOCAL}) for entry in ad_hoc)

    if remote_feed:
        display = [entry.model_copy(update={"source": Source.REMOTE}) for entry in remote_feed]
        log.debug("Projection uses remote feed for display (%d events, %d personal)", len(display), len(personal))
        return ProjectedSchedule(display=display, personal=personal, uses_remote_feed=True)

    log.debug("Projection uses personal schedule for display (%d events)", len(personal))
    return ProjectedSchedule(display=list(personal), personal=personal, uses_remote_feed=False)


def project_lists(
    lists: ScheduleLists,
    remote_feed: Optional[Sequence[Event]],
    today: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> ProjectedSchedule:
    return project_schedule(lists.recurring, lists.ad_hoc, remote_feed, today, window_days)


__all__ = ["DEFAULT_WINDOW_DAYS", "expand_recurring", "project_schedule", "project_lists"]
