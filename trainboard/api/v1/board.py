# trainboard/api/v1/board.py

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from trainboard.core.schedule.schemas import BoardState, Event
from trainboard.core.schedule.service import ScheduleService, local_now

from .schedule import get_schedule_service

router = APIRouter(prefix="/v1/board", tags=["board"])
log = logging.getLogger(__name__)


def get_now() -> datetime:
    return local_now()


@router.get("", response_model=BoardState)
async def read_board(
    station: Optional[str] = Query(None, description="Station id; enables the live feed for display"),
    page: int = Query(0, ge=0, description="Announcement page, wraps around"),
    service: ScheduleService = Depends(get_schedule_service),
    now: datetime = Depends(get_now),
):
    """One refresh cycle computed for the current wall clock."""
    return await service.build_board(station, page=page, now=now)


@router.get("/events/{event_id}", response_model=Event)
async def read_board_event(
    event_id: str,
    station: Optional[str] = Query(None),
    service: ScheduleService = Depends(get_schedule_service),
    now: datetime = Depends(get_now),
):
    """Detail view of one projected event (first instance for recurring ids)."""
    board = await service.build_board(station, now=now)
    candidates = list(board.display)
    if board.selected is not None:
        candidates.append(board.selected)
    for event in candidates:
        if event.id == event_id or event.key == event_id:
            return event
    log.warning("Detail requested for unknown event %s", event_id)
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="event not found")
