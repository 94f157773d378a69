from __future__ import annotations
import logging

from fastapi import FastAPI

from trainboard.api.v1.board import router as board_router
from trainboard.api.v1.events import router as events_router
from trainboard.api.v1.health import router as health_router
from trainboard.api.v1.schedule import router as schedule_router
from trainboard.config import settings
from trainboard.core.push import get_push_bus

logging.basicConfig(level=settings.LOG_LEVEL)
log = logging.getLogger(__name__)

description = """
Personal train board: weekly pattern + ad-hoc entries, optional live feed,
current train selection, timeline lanes, conflicts and announcements.
"""
tags_metadata = [
    {"name": "schedule", "description": "Authoritative recurring and ad-hoc lists."},
    {"name": "board", "description": "Derived board state for one refresh cycle."},
    {"name": "push", "description": "Server-Sent Events with update signals."},
    {"name": "infra", "description": "Health checks."},
]

app = FastAPI(
    title="Trainboard API",
    description=description,
    version="0.3.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=tags_metadata,
)

app.include_router(schedule_router)
app.include_router(board_router)
app.include_router(events_router)
app.include_router(health_router)

log.info("\U0001F686 FastAPI application configured. Environment: %s", settings.ENVIRONMENT)


@app.on_event("startup")
async def startup_event() -> None:
    log.info("\U0001F680 FastAPI application startup complete.")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    await get_push_bus().close()
    log.info("\U0001F44B FastAPI application shutdown.")
