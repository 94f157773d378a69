# trainboard/api/v1/schedule.py

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from trainboard.core.schedule.errors import PersistenceFailure
from trainboard.core.schedule.schemas import ScheduleLists
from trainboard.core.schedule.service import ScheduleService

router = APIRouter(prefix="/v1/schedule", tags=["schedule"])
log = logging.getLogger(__name__)


def get_schedule_service() -> ScheduleService:
    return ScheduleService()


@router.get("", response_model=ScheduleLists)
async def read_schedule(service: ScheduleService = Depends(get_schedule_service)):
    """Authoritative lists: weekly pattern and ad-hoc entries."""
    return await service.load_lists()


@router.put("", response_model=ScheduleLists)
async def replace_schedule(
    lists: ScheduleLists,
    service: ScheduleService = Depends(get_schedule_service),
):
    """
    Replace both lists as a whole (upsert by id, missing ids are deleted)
    and notify subscribers. Entries without a line are dropped.
    """
    try:
        saved = await service.save_lists(lists)
    except PersistenceFailure as exc:
        log.error("Schedule save failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="schedule not saved") from exc
    log.info("Schedule replaced: %d recurring, %d ad-hoc", len(saved.recurring), len(saved.ad_hoc))
    return saved
