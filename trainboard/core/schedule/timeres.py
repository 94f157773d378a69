# trainboard/core/schedule/timeres.py
"""
Разрешение строк вида ``"HH:MM"`` в абсолютные моменты времени.

Все datetime здесь наивные (локальные «настенные» часы табло).
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta
from typing import Optional, Tuple

from .errors import UnresolvableTime

log = logging.getLogger(__name__)

_CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::\d{2})?\s*$")

# Больше чем на 12 часов «позади» якоря → это завтрашнее время
ROLLOVER_THRESHOLD = timedelta(hours=12)


def parse_clock(clock: Optional[str]) -> Tuple[int, int]:
    """
    Strict ``"HH:MM"`` parser.

    Raises:
        UnresolvableTime: absent, malformed or out-of-range clock string.
    """
    if clock is None:
        raise UnresolvableTime(clock)
    match = _CLOCK_RE.match(str(clock))
    if not match:
        raise UnresolvableTime(clock)
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise UnresolvableTime(clock)
    return hour, minute


def resolve_clock(
    clock: Optional[str],
    anchor: datetime,
    explicit_date: Optional[date] = None,
) -> Optional[datetime]:
    """
    Turn a clock string into an absolute instant.

    Args:
        clock: ``"HH:MM"`` string.
        anchor: "now" supplied by the caller.
        explicit_date: concrete calendar day, never shifted when given.

    Returns:
        Optional[datetime]: resolved instant (seconds zeroed) or ``None``.
    """
    try:
        hour, minute = parse_clock(clock)
    except UnresolvableTime:
        log.debug("Unresolvable clock value %r", clock)
        return None

    if explicit_date is not None:
        return datetime(explicit_date.year, explicit_date.month, explicit_date.day, hour, minute)

    resolved = anchor.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if resolved < anchor - ROLLOVER_THRESHOLD:
        resolved += timedelta(days=1)
    return resolved


def format_clock(instant: datetime) -> str:
    return instant.strftime("%H:%M")


__all__ = ["parse_clock", "resolve_clock", "format_clock", "ROLLOVER_THRESHOLD"]
