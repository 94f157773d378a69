# trainboard/core/schedule/conflicts.py
"""
Conflict detection between active events and the narrower
"replacement service" relation (active × canceled).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Sequence, Tuple

from .errors import MissingWindow
from .occupancy import Window, nominal_window, require_window, windows_intersect
from .schemas import ConflictKind, ConflictPair, Event

log = logging.getLogger(__name__)


def _active_windows(events: Sequence[Event], now: datetime) -> List[Tuple[Event, Window]]:
    active: List[Tuple[Event, Window]] = []
    for event in events:
        if event.canceled:
            continue
        try:
            active.append((event, require_window(event, now)))
        except MissingWindow:
            log.debug("Event %s has no window, excluded from conflicts", event.id)
    return active


def classify(primary: Window, other: Window) -> ConflictKind:
    if other[0] >= primary[0] and other[1] <= primary[1]:
        return ConflictKind.CONTAINED
    return ConflictKind.NESTED


def find_conflicts(active_events: Sequence[Event], now: datetime) -> List[ConflictPair]:
    """
    Test every pair ``(a, b)``, ``a`` before ``b`` in input order.

    One :class:`ConflictPair` per intersecting pair, ``a`` as primary;
    the symmetric pair is not reported again.
    """
    active = _active_windows(active_events, now)
    pairs: List[ConflictPair] = []
    for i, (first, first_window) in enumerate(active):
        for second, second_window in active[i + 1:]:
            if not windows_intersect(first_window, second_window):
                continue
            pairs.append(
                ConflictPair(primary=first, other=second, kind=classify(first_window, second_window))
            )
    if pairs:
        log.debug("Found %d conflict pairs among %d active events", len(pairs), len(active))
    return pairs


def find_replacement_services(
    active_events: Sequence[Event],
    canceled_events: Sequence[Event],
    now: datetime,
) -> List[Event]:
    """Active events whose window intersects any canceled event's nominal window."""
    canceled_windows = []
    for event in canceled_events:
        window = nominal_window(event, now)
        if window is not None:
            canceled_windows.append(window)
    if not canceled_windows:
        return []

    replacements: List[Event] = []
    for event, window in _active_windows(active_events, now):
        if any(windows_intersect(window, other) for other in canceled_windows):
            replacements.append(event)
    return replacements


__all__ = ["classify", "find_conflicts", "find_replacement_services"]
