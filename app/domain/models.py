"""Domain models for the festival schedule service."""

from __future__ import annotations

import datetime as dt
import re
import uuid
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class ConflictType(StrEnum):
    TIME = "time"
    TRAVEL = "travel"


class TimelineEntryType(StrEnum):
    SELECTED = "selected"
    DESELECTED = "deselected"
    REMINDER_SCHEDULED = "reminder_scheduled"
    CONFLICT_DETECTED = "conflict_detected"
    REMINDER_SENT = "reminder_sent"


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Catalog records
# ---------------------------------------------------------------------------


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class Venue(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    address: str
    coordinates: Coordinates | None = None
    capacity: int | None = None


class Film(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    original_title: str | None = None
    director: str
    year: int
    duration: int = Field(gt=0, description="Running time in minutes")
    genres: list[str] = Field(default_factory=list)
    country: str
    synopsis: str = ""
    poster_url: str = ""
    trailer_url: str | None = None


class Screening(BaseModel):
    """A single showing of a film at a venue.

    ``start_time`` and ``end_time`` are 24-hour ``HH:MM`` strings on the same
    calendar ``date``; screenings crossing midnight are not modelled.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    film_id: str
    date: dt.date
    start_time: str
    end_time: str
    venue: Venue
    tickets_available: bool = True
    price: float | None = None

    @field_validator("date", mode="before")
    @classmethod
    def _truncate_to_day(cls, value):
        if isinstance(value, dt.datetime):
            return value.date()
        return value

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_hhmm(cls, value: str) -> str:
        if not _HHMM.match(value):
            raise ValueError(f"expected a 24-hour HH:MM time, got {value!r}")
        return value

    @model_validator(mode="after")
    def _end_after_start(self) -> Screening:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


# ---------------------------------------------------------------------------
# Conflict reports
# ---------------------------------------------------------------------------


class ConflictResult(BaseModel):
    has_conflict: bool
    conflict_type: ConflictType | None = None
    conflicting_screening: Screening | None = None
    message: str | None = None
    travel_minutes: int | None = None

    @classmethod
    def none(cls) -> ConflictResult:
        return cls(has_conflict=False)


class ScheduleValidation(BaseModel):
    is_valid: bool
    conflicts: list[ConflictResult] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Selection bookkeeping
# ---------------------------------------------------------------------------


class ReminderScheduleItem(BaseModel):
    id: str = Field(default_factory=_new_id)
    screening_id: str
    trigger_time: dt.datetime
    title: str
    body: str
    was_sent: bool = False
    sent_at: dt.datetime | None = None


class TimelineEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    screening_id: str
    timestamp: dt.datetime = Field(default_factory=_utcnow)
    type: TimelineEntryType
    payload: dict = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Response DTOs
# ---------------------------------------------------------------------------


class SelectionResponse(BaseModel):
    selected_ids: list[str]
    conflicts: list[ConflictResult] = Field(default_factory=list)


class AlternativesResponse(BaseModel):
    screening_id: str
    alternatives: list[Screening]
