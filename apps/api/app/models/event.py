from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from app.models.route import Difficulty, Route

if TYPE_CHECKING:
    from app.models.user import User


class EventStatus(str, Enum):
    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class EventType(str, Enum):
    GROUP_RIDE = "group_ride"
    TRAINING = "training"
    RACE = "race"
    SOCIAL = "social"


def _enum_values(enum_cls) -> list[str]:
    return [m.value for m in enum_cls]


class Event(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "events"
    __table_args__ = (
        # Series lookups filter on these columns plus date.
        sa.Index(
            "ix_events_series",
            "organizer_id",
            "title",
            "start_time",
            "meeting_point",
            "date",
        ),
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    route_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("routes.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    meeting_point: Mapped[str] = mapped_column(String(300), nullable=False)
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    difficulty: Mapped[Difficulty] = mapped_column(
        sa.Enum(Difficulty, name="difficulty", values_callable=_enum_values),
        nullable=False,
    )
    event_type: Mapped[EventType] = mapped_column(
        sa.Enum(EventType, name="event_type", values_callable=_enum_values),
        nullable=False,
    )
    strava_event_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    organizer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    status: Mapped[EventStatus] = mapped_column(
        sa.Enum(EventStatus, name="event_status", values_callable=_enum_values),
        nullable=False,
        default=EventStatus.SCHEDULED,
        server_default=EventStatus.SCHEDULED.value,
    )
    weather_conditions: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    route: Mapped[Route | None] = relationship()
    organizer: Mapped[User] = relationship(foreign_keys=[organizer_id])
    participant_entries: Mapped[list[EventParticipant]] = relationship(
        order_by="EventParticipant.id",
        viewonly=True,
    )
    waiting_entries: Mapped[list[EventWaitlistEntry]] = relationship(
        order_by="EventWaitlistEntry.id",
        viewonly=True,
    )

    @property
    def participants(self) -> list[User]:
        return [entry.user for entry in self.participant_entries]

    @property
    def waiting_list(self) -> list[User]:
        return [entry.user for entry in self.waiting_entries]


class _EventMembershipMixin:
    # Autoincrement key doubles as insertion order (waiting list is FIFO).
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class EventParticipant(Base, _EventMembershipMixin):
    __tablename__ = "event_participants"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_participants_event_user"),
    )

    user: Mapped[User] = relationship()


class EventWaitlistEntry(Base, _EventMembershipMixin):
    __tablename__ = "event_waiting_list"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_waiting_list_event_user"),
    )

    user: Mapped[User] = relationship()
