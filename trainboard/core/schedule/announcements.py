# trainboard/core/schedule/announcements.py
"""
Announcement aggregation: attention buckets, ordering and pagination.

An event may land in several buckets. ``note`` is never date-filtered;
cancelled / delayed / additional / replacement look at today's upcoming
events only; ``conflict`` looks at every upcoming active event.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime
from typing import List, Optional, Sequence

from .conflicts import find_conflicts, find_replacement_services
from .occupancy import delay_minutes, effective_start, is_future
from .schemas import (
    AnnouncementBucket,
    AnnouncementCategory,
    AnnouncementPage,
    Event,
)

log = logging.getLogger(__name__)

PAGE_SIZE = 3
ADDITIONAL_SERVICE_MARKER = "[ZF]"


def is_additional_service(event: Event, marker: str = ADDITIONAL_SERVICE_MARKER) -> bool:
    return event.destination.strip().startswith(marker)


def strip_marker(destination: str, marker: str = ADDITIONAL_SERVICE_MARKER) -> str:
    text = destination.strip()
    if text.startswith(marker):
        return text[len(marker):].lstrip()
    return destination


def _bucket(
    category: AnnouncementCategory,
    event: Event,
    now: datetime,
    marker: str,
    **extra,
) -> AnnouncementBucket:
    start: Optional[datetime] = None
    if event.plan_time is not None:
        start = effective_start(event, now)
    return AnnouncementBucket(
        category=category,
        event=event.model_copy(),
        display_destination=strip_marker(event.destination, marker),
        start=start,
        **extra,
    )


def collect_buckets(
    events: Sequence[Event],
    now: datetime,
    today: date,
    marker: str = ADDITIONAL_SERVICE_MARKER,
) -> List[AnnouncementBucket]:
    """Derive and order all buckets for one cycle (no pagination)."""
    found: List[AnnouncementBucket] = []

    # --- note: без времени, без фильтра по дате ---
    for event in events:
        if event.plan_time is None:
            found.append(_bucket(AnnouncementCategory.NOTE, event, now, marker))

    scheduled = [e for e in events if e.plan_time is not None and effective_start(e, now) is not None]
    scheduled.sort(key=lambda e: effective_start(e, now))
    upcoming = [e for e in scheduled if is_future(e, now)]
    todays = [e for e in upcoming if e.date == today]

    for event in todays:
        if event.canceled:
            found.append(_bucket(AnnouncementCategory.CANCELLED, event, now, marker))
            continue
        delay = delay_minutes(event, now)
        if event.actual_time is not None and event.actual_time != event.plan_time and delay > 0:
            found.append(
                _bucket(AnnouncementCategory.DELAYED, event, now, marker, delay_minutes=delay)
            )
        if is_additional_service(event, marker):
            found.append(_bucket(AnnouncementCategory.ADDITIONAL_SERVICE, event, now, marker))

    canceled_today = [e for e in todays if e.canceled]
    active_today = [e for e in todays if not e.canceled]
    for event in find_replacement_services(active_today, canceled_today, now):
        found.append(_bucket(AnnouncementCategory.REPLACEMENT_SERVICE, event, now, marker))

    active_upcoming = [e for e in upcoming if not e.canceled]
    for pair in find_conflicts(active_upcoming, now):
        found.append(
            _bucket(
                AnnouncementCategory.CONFLICT,
                pair.primary,
                now,
                marker,
                other=pair.other.model_copy(),
                kind=pair.kind,
            )
        )

    # Без времени первыми (порядок обнаружения), затем по времени; sort стабилен
    found.sort(key=lambda b: (b.start is not None, b.start or datetime.min))
    return found


def paginate(
    buckets: Sequence[AnnouncementBucket],
    page: int = 0,
    page_size: int = PAGE_SIZE,
) -> AnnouncementPage:
    total = len(buckets)
    total_pages = math.ceil(total / page_size) if total else 0
    current = page % total_pages if total_pages else 0
    offset = current * page_size
    return AnnouncementPage(
        buckets=list(buckets),
        page_items=list(buckets[offset:offset + page_size]),
        total_pages=total_pages,
        current_page=current,
        page_size=page_size,
        needs_rotation=total_pages > 1,
    )


def aggregate(
    events: Sequence[Event],
    now: datetime,
    today: date,
    page: int = 0,
    page_size: int = PAGE_SIZE,
    marker: str = ADDITIONAL_SERVICE_MARKER,
) -> AnnouncementPage:
    """
    Bucket, order and paginate the projected set.

    Args:
        events: projected (display) set.
        now: wall clock reading.
        today: calendar day used by the today-only buckets.
        page: requested page index, wrapped modulo the page count.
        page_size: buckets per page.
        marker: additional-service destination prefix.

    Returns:
        AnnouncementPage: empty input yields zero buckets and zero pages.
    """
    buckets = collect_buckets(events, now, today, marker)
    result = paginate(buckets, page, page_size)
    log.debug(
        "Aggregated %d announcement buckets into %d pages (current %d)",
        len(buckets), result.total_pages, result.current_page,
    )
    return result


__all__ = [
    "PAGE_SIZE",
    "ADDITIONAL_SERVICE_MARKER",
    "is_additional_service",
    "strip_marker",
    "collect_buckets",
    "paginate",
    "aggregate",
]
