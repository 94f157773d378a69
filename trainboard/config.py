# trainboard/config.py

from __future__ import annotations

import logging
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Единый конфиг проекта. Читает переменные окружения.
    Pydantic v2 + pydantic-settings.
    """
    model_config = SettingsConfigDict(
        case_sensitive=False,  # Имена переменных окружения не чувствительны к регистру
        extra="ignore",
    )

    # --- Основные настройки ---
    ENVIRONMENT: str = Field("dev", description="Application environment (dev, test, prod)")
    LOG_LEVEL: str = Field("INFO", description="Root logging level")

    # --- База данных ---
    DATABASE_URL: str = Field(..., description="Async database connection URL (e.g., postgresql+asyncpg://...)")

    # --- Redis / Celery ---
    REDIS_URL: str = Field("redis://redis:6379/0", description="URL for Redis connection")
    CELERY_BROKER_URL: Optional[str] = Field(None, description="Celery broker URL (defaults to REDIS_URL)")
    CELERY_RESULT_BACKEND: Optional[str] = Field(None, description="Celery result backend URL (defaults to REDIS_URL)")

    # --- Часы и окно расписания ---
    TIMEZONE: str = Field("Europe/Berlin", description="Wall clock used for 'now' and 'today'")
    WINDOW_DAYS: int = Field(7, ge=1, description="Days the weekly pattern is expanded across")

    # --- Объявления ---
    PAGE_SIZE: int = Field(3, ge=1, description="Announcement page size")
    PAGE_ROTATION_SECONDS: float = Field(16.0, gt=0, description="Announcement page rotation interval")
    ADDITIONAL_SERVICE_MARKER: str = Field("[ZF]", description="Destination prefix marking an additional service")

    # --- Live sync ---
    REFRESH_INTERVAL_SECONDS: float = Field(60.0, gt=0, description="Periodic refresh / feed poll interval")
    EDIT_DEBOUNCE_SECONDS: float = Field(0.8, ge=0, description="Debounce window for edits")
    BLUR_GRACE_SECONDS: float = Field(0.05, ge=0, description="Grace delay before re-checking editor focus on blur")

    # --- Remote feed ---
    FEED_PROVIDER: str = Field("noop", description="Remote feed provider ('noop', 'http')")
    FEED_URL: Optional[str] = Field(None, description="Live departures endpoint for the http provider")
    FEED_TIMEOUT_SECONDS: float = Field(15.0, gt=0, description="HTTP timeout of the feed provider")
    DEFAULT_STATION: Optional[str] = Field(None, description="Station id polled by the beat schedule")

    # --- Push ---
    PUSH_BACKEND: str = Field("memory", description="Push backend ('memory', 'redis')")
    PUSH_CHANNEL: str = Field("trainboard:updates", description="Redis pub/sub channel for update signals")

    # --- Динамические значения по умолчанию для Celery ---
    @model_validator(mode='after')
    def set_celery_defaults(self) -> 'Settings':
        if self.CELERY_BROKER_URL is None:
            log.debug("Setting CELERY_BROKER_URL default from REDIS_URL")
            self.CELERY_BROKER_URL = self.REDIS_URL
        if self.CELERY_RESULT_BACKEND is None:
            log.debug("Setting CELERY_RESULT_BACKEND default from REDIS_URL")
            self.CELERY_RESULT_BACKEND = self.REDIS_URL
        return self


try:
    settings = Settings()
    log.info("Settings loaded successfully for ENVIRONMENT=%s", settings.ENVIRONMENT)
    log.debug("Loaded settings: DB URL=%s..., Redis URL=%s, feed provider=%s, push backend=%s",
              str(settings.DATABASE_URL)[:25],
              settings.REDIS_URL,
              settings.FEED_PROVIDER,
              settings.PUSH_BACKEND)
except Exception:
    log.exception("Failed to instantiate Settings.")
    raise
