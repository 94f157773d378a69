# trainboard/core/schedule/models.py

from __future__ import annotations

import datetime as dt

from sqlalchemy import JSON, Boolean, Date, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from trainboard.db.base import Base

LIST_RECURRING = "recurring"
LIST_AD_HOC = "ad_hoc"


class ScheduleEntry(Base):
    """
    ORM модель записи авторитетного списка.

    Одна таблица на оба списка: ``list_kind`` различает недельный шаблон
    и разовые записи, ``position`` хранит порядок внутри списка.
    """
    __tablename__ = "schedule_entries"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    list_kind: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    line: Mapped[str | None] = mapped_column(String, nullable=True)
    destination: Mapped[str] = mapped_column(String, nullable=False, default="")
    plan_time: Mapped[str | None] = mapped_column(String(8), nullable=True)
    actual_time: Mapped[str | None] = mapped_column(String(8), nullable=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Только для разовых записей; у шаблона день задаёт weekday
    date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    weekday: Mapped[str | None] = mapped_column(String(10), nullable=True)
    canceled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    stops: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime, default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow, nullable=False
    )

    __table_args__ = (
        Index("ix_schedule_entries_kind_position", "list_kind", "position"),
        {"extend_existing": True},
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<ScheduleEntry id={self.id!r} kind={self.list_kind} line={self.line!r} "
            f"plan={self.plan_time} date={self.date} weekday={self.weekday}>"
        )
