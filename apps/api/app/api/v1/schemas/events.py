from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models import Event, User
from app.models.event import EventStatus, EventType
from app.models.route import Difficulty

START_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

# Columns that may not be cleared through an explicit null in a patch.
NON_NULLABLE_PATCH_FIELDS = frozenset(
    {"title", "date", "start_time", "meeting_point", "difficulty", "event_type", "status"}
)


def _ensure_tzaware(value: datetime | None) -> datetime | None:
    if value is None:
        return value
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        raise ValueError("datetime must be timezone-aware")
    return value.astimezone(timezone.utc)


def _assume_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SchemaBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore")


class RecurrenceIn(SchemaBase):
    interval_weeks: Literal[1, 2, 4, 8]
    occurrences: int = Field(ge=1, le=104)


class EventCreate(SchemaBase):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    date: datetime
    start_time: str = Field(pattern=START_TIME_PATTERN)
    duration: int | None = Field(default=None, ge=1)
    route_id: UUID | None = None
    meeting_point: str = Field(min_length=1, max_length=300)
    max_participants: int | None = Field(default=None, ge=1)
    difficulty: Difficulty
    event_type: EventType
    strava_event_url: str | None = Field(default=None, max_length=500)
    weather_conditions: str | None = None
    notes: str | None = None
    recurrence: RecurrenceIn | None = None

    @field_validator("date", mode="after")
    @classmethod
    def _validate_tzaware(cls, value: datetime) -> datetime:
        return _ensure_tzaware(value)

    @property
    def occurrences(self) -> int:
        if self.recurrence is None or self.recurrence.occurrences <= 1:
            return 1
        return self.recurrence.occurrences


class EventUpdate(SchemaBase):
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    date: datetime | None = None
    start_time: str | None = Field(default=None, pattern=START_TIME_PATTERN)
    duration: int | None = Field(default=None, ge=1)
    route_id: UUID | None = None
    meeting_point: str | None = Field(default=None, min_length=1, max_length=300)
    max_participants: int | None = Field(default=None, ge=1)
    difficulty: Difficulty | None = None
    event_type: EventType | None = None
    strava_event_url: str | None = Field(default=None, max_length=500)
    status: EventStatus | None = None
    weather_conditions: str | None = None
    notes: str | None = None

    @field_validator("date", mode="after")
    @classmethod
    def _validate_tzaware(cls, value: datetime | None) -> datetime | None:
        return _ensure_tzaware(value)

    @model_validator(mode="after")
    def _reject_null_required_fields(self):
        for name in self.model_fields_set & NON_NULLABLE_PATCH_FIELDS:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class RegistrantOut(SchemaBase):
    user_id: UUID
    name: str

    @classmethod
    def from_user(cls, user: User) -> RegistrantOut:
        return cls(user_id=user.id, name=user.display_name)


class EventRouteOut(SchemaBase):
    id: UUID
    name: str
    distance: float
    difficulty: Difficulty
    event_count: int


class EventOut(SchemaBase):
    id: UUID
    title: str
    description: str | None = None
    date: datetime
    start_time: str
    duration: int | None = None
    route_id: UUID | None = None
    meeting_point: str
    max_participants: int | None = None
    difficulty: Difficulty
    event_type: EventType
    strava_event_url: str | None = None
    organizer_id: UUID
    organizer_name: str
    status: EventStatus
    weather_conditions: str | None = None
    notes: str | None = None
    route: EventRouteOut | None = None
    participants: list[RegistrantOut]
    waiting_list: list[RegistrantOut]
    participant_count: int
    waiting_list_count: int

    @field_validator("date", mode="after")
    @classmethod
    def _normalize_date(cls, value: datetime) -> datetime:
        return _assume_utc(value)

    @classmethod
    def from_event(cls, event: Event) -> EventOut:
        participants = [RegistrantOut.from_user(u) for u in event.participants]
        waiting = [RegistrantOut.from_user(u) for u in event.waiting_list]
        return cls(
            id=event.id,
            title=event.title,
            description=event.description,
            date=event.date,
            start_time=event.start_time,
            duration=event.duration,
            route_id=event.route_id,
            meeting_point=event.meeting_point,
            max_participants=event.max_participants,
            difficulty=event.difficulty,
            event_type=event.event_type,
            strava_event_url=event.strava_event_url,
            organizer_id=event.organizer_id,
            organizer_name=event.organizer.display_name,
            status=event.status,
            weather_conditions=event.weather_conditions,
            notes=event.notes,
            route=EventRouteOut.model_validate(event.route) if event.route else None,
            participants=participants,
            waiting_list=waiting,
            participant_count=len(participants),
            waiting_list_count=len(waiting),
        )


class EventCreatedOut(SchemaBase):
    event_id: UUID
    event_ids: list[UUID]
    count: int


class EventDeletedOut(SchemaBase):
    deleted_count: int


class RegistrationStatus(str, Enum):
    NONE = "none"
    PARTICIPANT = "participant"
    WAITING = "waiting"


class RegistrationOut(SchemaBase):
    event_id: UUID
    user_id: UUID
    status: RegistrationStatus
