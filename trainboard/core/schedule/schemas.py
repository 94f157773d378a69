# trainboard/core/schedule/schemas.py
"""
Pydantic-схемы ядра расписания.

Все записи нормализуются на входе (ingestion): устаревшие имена полей
(``linie``, ``ziel``, ``plan``, ``dauer``, ``zwischenhalte`` …) принимаются
как алиасы, ``stops`` всегда становится списком строк, пустые времена
становятся ``None``.
"""

from __future__ import annotations

import datetime as dt
import uuid
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


def new_event_id() -> str:
    """Opaque, never reused identity assigned at ingestion."""
    return uuid.uuid4().hex


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_date(cls, day: dt.date) -> "Weekday":
        return list(cls)[day.weekday()]


class Source(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


class Event(BaseModel):
    """
    Одна «поездка» (train): занятие ресурса на отрезок времени.

    ``plan_time`` отсутствует → это заметка без времени.
    ``actual_time`` отсутствует → используется план.
    ``date`` отсутствует → день берётся из ``weekday`` (шаблон недели).
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(
        default_factory=new_event_id,
        validation_alias=AliasChoices("id", "_uniqueId", "uniqueId"),
    )
    line: Optional[str] = Field(None, validation_alias=AliasChoices("line", "linie"))
    destination: str = Field("", validation_alias=AliasChoices("destination", "ziel"))
    plan_time: Optional[str] = Field(None, validation_alias=AliasChoices("plan_time", "planTime", "plan"))
    actual_time: Optional[str] = Field(None, validation_alias=AliasChoices("actual_time", "actualTime", "actual"))
    duration_minutes: int = Field(
        0, validation_alias=AliasChoices("duration_minutes", "durationMinutes", "dauer", "duration")
    )
    date: Optional[dt.date] = None
    weekday: Optional[Weekday] = None
    canceled: bool = Field(False, validation_alias=AliasChoices("canceled", "cancelled"))
    source: Source = Source.LOCAL
    is_recurring: bool = Field(
        False, validation_alias=AliasChoices("is_recurring", "isRecurring", "isFixedSchedule")
    )
    stops: List[str] = Field(default_factory=list, validation_alias=AliasChoices("stops", "zwischenhalte"))

    # ------------------------------------------------------------------ #
    #                        ingestion normalizers                       #
    # ------------------------------------------------------------------ #
    @field_validator("id", mode="before")
    @classmethod
    def _ensure_id(cls, value: Any) -> str:
        if value is None or str(value).strip() == "":
            return new_event_id()
        return str(value)

    @field_validator("plan_time", "actual_time", mode="before")
    @classmethod
    def _blank_clock_is_absent(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("destination", mode="before")
    @classmethod
    def _destination_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def _duration_non_negative(cls, value: Any) -> int:
        try:
            minutes = int(float(value))
        except (TypeError, ValueError):
            return 0
        return max(minutes, 0)

    @field_validator("date", mode="before")
    @classmethod
    def _date_part(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        if isinstance(value, dt.datetime):
            return value.date()
        if isinstance(value, str):
            # ISO timestamp → только дата
            return value.strip().split("T")[0]
        return value

    @field_validator("weekday", mode="before")
    @classmethod
    def _weekday_lower(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() or None
        return value

    @field_validator("source", mode="before")
    @classmethod
    def _source_alias(cls, value: Any) -> Any:
        if value == "db-api":
            return Source.REMOTE
        return value

    @field_validator("stops", mode="before")
    @classmethod
    def _stops_as_list(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return value.split("\n") if value else []
        return [str(item) for item in value]

    @property
    def key(self) -> str:
        """Render-pass key: recurring instances share ``id`` across days."""
        if self.is_recurring and self.date is not None:
            return f"{self.id}@{self.date.isoformat()}"
        return self.id


class ScheduleLists(BaseModel):
    """Authoritative, writable source lists: weekly pattern + ad-hoc entries."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    recurring: List[Event] = Field(
        default_factory=list, validation_alias=AliasChoices("recurring", "fixedSchedule")
    )
    ad_hoc: List[Event] = Field(
        default_factory=list, validation_alias=AliasChoices("ad_hoc", "adHoc", "spontaneousEntries")
    )

    @model_validator(mode="before")
    @classmethod
    def _fold_legacy_trains(cls, data: Any) -> Any:
        # Старый формат: плоский список ``trains`` без разделения на шаблон и разовые
        if isinstance(data, dict) and "trains" in data:
            new_keys = {"recurring", "fixedSchedule", "ad_hoc", "adHoc", "spontaneousEntries"}
            if not new_keys.intersection(data):
                data = {key: value for key, value in data.items() if key != "trains"} | {
                    "ad_hoc": list(data["trains"] or []),
                }
        return data

    def find(self, event_id: str) -> Optional[Event]:
        for entry in (*self.recurring, *self.ad_hoc):
            if entry.id == event_id:
                return entry
        return None


class BoardInputs(BaseModel):
    """What the fetch collaborator hands to one refresh cycle."""
    lists: ScheduleLists = Field(default_factory=ScheduleLists)
    remote_feed: Optional[List[Event]] = None


class ProjectedSchedule(BaseModel):
    display: List[Event] = Field(default_factory=list)
    personal: List[Event] = Field(default_factory=list)
    uses_remote_feed: bool = False


class ConflictKind(str, Enum):
    CONTAINED = "contained"
    NESTED = "nested"


class ConflictPair(BaseModel):
    primary: Event
    other: Event
    kind: ConflictKind


class AnnouncementCategory(str, Enum):
    NOTE = "note"
    CANCELLED = "cancelled"
    DELAYED = "delayed"
    ADDITIONAL_SERVICE = "additionalService"
    REPLACEMENT_SERVICE = "replacementService"
    CONFLICT = "conflict"


class AnnouncementBucket(BaseModel):
    category: AnnouncementCategory
    event: Event
    other: Optional[Event] = None
    kind: Optional[ConflictKind] = None
    display_destination: str = ""
    start: Optional[dt.datetime] = None
    delay_minutes: int = 0


class AnnouncementPage(BaseModel):
    buckets: List[AnnouncementBucket] = Field(default_factory=list)
    page_items: List[AnnouncementBucket] = Field(default_factory=list)
    total_pages: int = 0
    current_page: int = 0
    page_size: int = 3
    needs_rotation: bool = False


class TimelineSpan(BaseModel):
    start: dt.datetime
    end: dt.datetime
    hours: int


class Countdown(BaseModel):
    phase: Literal["arrival", "departure"]
    target: dt.datetime
    seconds: int


class BoardState(BaseModel):
    """Read-only per-cycle structure consumed by the presentation layer."""
    selected: Optional[Event] = None
    display: List[Event] = Field(default_factory=list)
    lanes: Dict[str, int] = Field(default_factory=dict)
    conflicts: List[ConflictPair] = Field(default_factory=list)
    announcements: AnnouncementPage = Field(default_factory=AnnouncementPage)
    timeline: Optional[TimelineSpan] = None
    countdown: Optional[Countdown] = None
    uses_remote_feed: bool = False
    generated_at: dt.datetime


__all__ = [
    "new_event_id",
    "Weekday",
    "Source",
    "Event",
    "ScheduleLists",
    "BoardInputs",
    "ProjectedSchedule",
    "ConflictKind",
    "ConflictPair",
    "AnnouncementCategory",
    "AnnouncementBucket",
    "AnnouncementPage",
    "TimelineSpan",
    "Countdown",
    "BoardState",
]
