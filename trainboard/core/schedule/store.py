# trainboard/core/schedule/store.py

"""Persistence of the authoritative lists (persist collaborator)."""

from __future__ import annotations

import logging
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .errors import PersistenceFailure
from .models import LIST_AD_HOC, LIST_RECURRING, ScheduleEntry
from .schemas import Event, ScheduleLists

log = logging.getLogger(__name__)


def _entry_to_event(row: ScheduleEntry) -> Event:
    return Event(
        id=row.id,
        line=row.line,
        destination=row.destination,
        plan_time=row.plan_time,
        actual_time=row.actual_time,
        duration_minutes=row.duration_minutes,
        date=row.date,
        weekday=row.weekday,
        canceled=row.canceled,
        stops=list(row.stops or []),
    )


def _apply_event(row: ScheduleEntry, event: Event, list_kind: str, position: int) -> None:
    row.list_kind = list_kind
    row.position = position
    row.line = event.line
    row.destination = event.destination
    row.plan_time = event.plan_time
    row.actual_time = event.actual_time
    row.duration_minutes = event.duration_minutes
    row.date = event.date if list_kind == LIST_AD_HOC else None
    row.weekday = event.weekday.value if event.weekday is not None else None
    row.canceled = event.canceled
    row.stops = list(event.stops)


class ScheduleStore:
    """
    Асинхронный сервис хранения расписания.
    Использует внедрение зависимостей (DI) для получения AsyncSession.
    """

    def __init__(self, db_session: AsyncSession) -> None:
        self.db: AsyncSession = db_session

    async def load_lists(self) -> ScheduleLists:
        stmt = select(ScheduleEntry).order_by(ScheduleEntry.list_kind, ScheduleEntry.position)
        rows = (await self.db.scalars(stmt)).all()
        recurring: List[Event] = []
        ad_hoc: List[Event] = []
        for row in rows:
            target = recurring if row.list_kind == LIST_RECURRING else ad_hoc
            target.append(_entry_to_event(row))
        log.debug("Loaded %d recurring / %d ad-hoc entries", len(recurring), len(ad_hoc))
        return ScheduleLists(recurring=recurring, ad_hoc=ad_hoc)

    async def save_lists(self, lists: ScheduleLists) -> None:
        """
        Write the complete lists: upsert by ``id``, delete rows that are
        no longer listed.

        Raises:
            PersistenceFailure: the database rejected the write.
        """
        try:
            existing: Dict[str, ScheduleEntry] = {
                row.id: row for row in (await self.db.scalars(select(ScheduleEntry))).all()
            }
            seen = set()
            for list_kind, events in ((LIST_RECURRING, lists.recurring), (LIST_AD_HOC, lists.ad_hoc)):
                for position, event in enumerate(events):
                    if event.id in seen:
                        log.warning("Duplicate id %s in written lists, keeping first", event.id)
                        continue
                    seen.add(event.id)
                    row = existing.get(event.id)
                    if row is None:
                        row = ScheduleEntry(id=event.id)
                        self.db.add(row)
                    _apply_event(row, event, list_kind, position)
            removed = 0
            for entry_id, row in existing.items():
                if entry_id not in seen:
                    await self.db.delete(row)
                    removed += 1
            await self.db.flush()
        except SQLAlchemyError as exc:
            log.exception("Saving schedule lists failed")
            raise PersistenceFailure(f"Saving schedule lists failed: {exc}") from exc
        log.info(
            "Saved %d recurring / %d ad-hoc entries (%d removed)",
            len(lists.recurring), len(lists.ad_hoc), removed,
        )


__all__ = ["ScheduleStore"]
