# trainboard/core/schedule/selection.py

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from .occupancy import effective_start, is_currently_occupying, is_future
from .schemas import Event

log = logging.getLogger(__name__)


def select_current(personal_events: Sequence[Event], now: datetime) -> Optional[Event]:
    """
    Pick the single "current" personal event.

    Occupying events win, the latest-starting one first; otherwise the
    earliest upcoming event. Always called with the personal schedule,
    never with the remote feed.
    """
    timed: List[Tuple[datetime, Event]] = []
    for event in personal_events:
        if event.plan_time is None:
            continue
        start = effective_start(event, now)
        if start is None:
            continue
        timed.append((start, event))
    timed.sort(key=lambda item: item[0])

    upcoming = [(start, event) for start, event in timed if is_future(event, now)]
    if not upcoming:
        return None

    occupying = [(start, event) for start, event in upcoming if is_currently_occupying(event, now)]
    if occupying:
        latest_start, latest = occupying[0]
        for start, event in occupying[1:]:
            if start > latest_start:
                latest_start, latest = start, event
        log.debug("Selected occupying event %s (start %s)", latest.id, latest_start)
        return latest

    return upcoming[0][1]


__all__ = ["select_current"]
