# trainboard/core/schedule/layout.py
"""
Overlap lanes for the timeline and the visible timeline span.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from .occupancy import Window, effective_start, occupancy_window, windows_intersect
from .schemas import Event, TimelineSpan

log = logging.getLogger(__name__)

MAX_LANE = 3  # 4 видимые дорожки: 0..3
TIMELINE_TAIL = timedelta(hours=2)


def _windowed(events: Sequence[Event], now: datetime) -> List[Tuple[Event, Window]]:
    out: List[Tuple[Event, Window]] = []
    for event in events:
        if event.canceled:
            continue
        window = occupancy_window(event, now)
        if window is None:
            log.debug("Layout skips event %s without window", event.id)
            continue
        out.append((event, window))
    # sort() стабилен: равные старты сохраняют порядок входа
    out.sort(key=lambda item: item[1][0])
    return out


def assign_lanes(events: Sequence[Event], now: datetime) -> Dict[str, int]:
    """
    Assign a stacking lane to every non-canceled event with a window.

    Returns:
        Dict[str, int]: ``event.key`` → lane in ``[0, MAX_LANE]``.
    """
    placed: List[Tuple[Window, int]] = []
    lanes: Dict[str, int] = {}
    for event, window in _windowed(events, now):
        candidate = 0
        for other_window, other_lane in placed:
            if windows_intersect(window, other_window):
                candidate = max(candidate, other_lane + 1)
        lane = min(candidate, MAX_LANE)
        placed.append((window, lane))
        lanes[event.key] = lane
    return lanes


def _floor_hour(instant: datetime) -> datetime:
    return instant.replace(minute=0, second=0, microsecond=0)


def timeline_bounds(
    events: Sequence[Event],
    selected: Optional[Event],
    now: datetime,
) -> TimelineSpan:
    """
    Visible timeline: from the earlier of the current hour and the selected
    event's hour, to two hours past the latest occupancy end.
    """
    start = _floor_hour(now)
    if selected is not None:
        selected_start = effective_start(selected, now)
        if selected_start is not None:
            start = min(start, _floor_hour(selected_start))

    latest_end = start
    for _event, window in _windowed(events, now):
        latest_end = max(latest_end, window[1])
    end = latest_end + TIMELINE_TAIL

    hours = max(math.ceil((end - start).total_seconds() / 3600), 1)
    return TimelineSpan(start=start, end=end, hours=hours)


__all__ = ["MAX_LANE", "assign_lanes", "timeline_bounds"]
