# trainboard/api/v1/health.py

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from trainboard.config import settings
from trainboard.core.feeds import get_feed_provider
from trainboard.core.push import get_push_bus
from trainboard.db.base import engine

router = APIRouter(tags=["infra"])
log = logging.getLogger(__name__)


@router.get("/healthz")
async def healthz():
    out: dict[str, str] = {"environment": settings.ENVIRONMENT}

    # DB
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        out["db"] = "ok"
    except SQLAlchemyError as exc:
        log.exception("DB health check failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="db error") from exc

    # Push (Redis только для redis-бэкенда)
    bus = get_push_bus()
    if settings.PUSH_BACKEND.lower() == "redis":
        try:
            if not await bus.ping():
                raise RedisError("ping returned false")
            out["push"] = "ok"
        except RedisError as exc:
            log.exception("Redis health check failed")
            raise HTTPException(status_code=500, detail="push error") from exc
    else:
        out["push"] = "memory"

    # Feed (only if не noop)
    feed = get_feed_provider()
    if feed.name != "noop":
        out["feed"] = "ok" if await feed.ping() else "unreachable"
    else:
        out["feed"] = "noop"

    return out
