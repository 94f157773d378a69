# trainboard/core/schedule/editing.py
"""
Editing reducer over the authoritative lists.

Each operation returns new :class:`ScheduleLists`; the input is left
untouched so a failed persist can keep the previous state.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, Tuple

from .errors import StaleIdentity
from .occupancy import delay_minutes
from .schemas import Event, ScheduleLists, Source, Weekday
from .timeres import format_clock, resolve_clock

log = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({
    "line",
    "destination",
    "plan_time",
    "actual_time",
    "duration_minutes",
    "stops",
    "canceled",
    "date",
    "weekday",
})

DELAY_STEPS = (-5, 5, 10, 30)


def _locate(lists: ScheduleLists, event_id: str) -> Tuple[str, int]:
    for list_name in ("recurring", "ad_hoc"):
        for index, entry in enumerate(getattr(lists, list_name)):
            if entry.id == event_id:
                return list_name, index
    raise StaleIdentity(event_id)


def _replace(lists: ScheduleLists, list_name: str, index: int, entry: Event) -> ScheduleLists:
    entries = list(getattr(lists, list_name))
    entries[index] = entry
    return lists.model_copy(update={list_name: entries})


def _revalidate(entry: Event, changes: Dict[str, Any]) -> Event:
    # Полная валидация: нормализаторы ingestion применяются и к правкам
    data = entry.model_dump()
    data.update(changes)
    return Event.model_validate(data)


def update_field(lists: ScheduleLists, event_id: str, field: str, value: Any) -> ScheduleLists:
    """
    Set one editable field of the entry ``event_id``.

    ``date`` applies to ad-hoc entries only (and re-derives ``weekday``);
    ``weekday`` applies to recurring patterns only.

    Raises:
        StaleIdentity: no entry with this id.
        ValueError: field is not editable.
    """
    if field not in EDITABLE_FIELDS:
        raise ValueError(f"Field {field!r} is not editable")
    list_name, index = _locate(lists, event_id)
    entry = getattr(lists, list_name)[index]

    if field == "date":
        if list_name != "ad_hoc":
            log.debug("Ignoring date edit on recurring pattern %s", event_id)
            return lists
        updated = _revalidate(entry, {"date": value})
        if updated.date is not None:
            updated = updated.model_copy(update={"weekday": Weekday.from_date(updated.date)})
        return _replace(lists, list_name, index, updated)

    if field == "weekday" and list_name != "recurring":
        log.debug("Ignoring weekday edit on ad-hoc entry %s", event_id)
        return lists

    return _replace(lists, list_name, index, _revalidate(entry, {field: value}))


def shift_delay(lists: ScheduleLists, event_id: str, minutes: int, now: datetime) -> ScheduleLists:
    """
    Move ``actual_time`` to ``plan + current delay + minutes``; no-op without a plan.

    Raises:
        ValueError: ``minutes`` is not one of :data:`DELAY_STEPS`.
    """
    if minutes not in DELAY_STEPS:
        raise ValueError(f"Delay step {minutes} not in {DELAY_STEPS}")
    list_name, index = _locate(lists, event_id)
    entry = getattr(lists, list_name)[index]
    planned = resolve_clock(entry.plan_time, now, entry.date)
    if planned is None:
        log.debug("Delay shift ignored for %s without plan time", event_id)
        return lists
    total = delay_minutes(entry, now) + minutes
    actual = format_clock(planned + timedelta(minutes=total))
    return _replace(lists, list_name, index, entry.model_copy(update={"actual_time": actual}))


def toggle_canceled(lists: ScheduleLists, event_id: str) -> ScheduleLists:
    list_name, index = _locate(lists, event_id)
    entry = getattr(lists, list_name)[index]
    return _replace(lists, list_name, index, entry.model_copy(update={"canceled": not entry.canceled}))


def add_ad_hoc_entry(lists: ScheduleLists, today: date) -> Tuple[ScheduleLists, Event]:
    entry = Event(date=today, weekday=Weekday.from_date(today))
    log.info("Adding ad-hoc entry %s for %s", entry.id, today.isoformat())
    return lists.model_copy(update={"ad_hoc": [*lists.ad_hoc, entry]}), entry


def remove_entry(lists: ScheduleLists, event_id: str) -> ScheduleLists:
    list_name, index = _locate(lists, event_id)
    entries = list(getattr(lists, list_name))
    del entries[index]
    log.info("Removed entry %s from %s list", event_id, list_name)
    return lists.model_copy(update={list_name: entries})


def prepare_for_persist(lists: ScheduleLists) -> ScheduleLists:
    """
    Shape the lists for the persist collaborator.

    Entries without a non-empty ``line`` are dropped. Recurring patterns
    lose their per-day ``date`` and projection tags.
    """
    def has_line(entry: Event) -> bool:
        return bool((entry.line or "").strip())

    recurring = [
        entry.model_copy(update={"date": None, "is_recurring": False, "source": Source.LOCAL})
        for entry in lists.recurring
        if has_line(entry)
    ]
    ad_hoc = [entry for entry in lists.ad_hoc if has_line(entry)]
    dropped = len(lists.recurring) + len(lists.ad_hoc) - len(recurring) - len(ad_hoc)
    if dropped:
        log.info("Dropping %d entries without line before persist", dropped)
    return ScheduleLists(recurring=recurring, ad_hoc=ad_hoc)


__all__ = [
    "EDITABLE_FIELDS",
    "DELAY_STEPS",
    "update_field",
    "shift_delay",
    "toggle_canceled",
    "add_ad_hoc_entry",
    "remove_entry",
    "prepare_for_persist",
]
