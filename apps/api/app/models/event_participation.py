from __future__ import annotations

import uuid
from enum import Enum

import sqlalchemy as sa
from sqlalchemy import ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class ParticipationStatus(str, Enum):
    REGISTERED = "registered"


class EventParticipation(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Registration history row.

    Written on join and removed on leave. Capacity decisions never read it;
    the participant and waiting-list tables are authoritative.
    """

    __tablename__ = "event_participations"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_participations_event_user"),
    )

    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[ParticipationStatus] = mapped_column(
        sa.Enum(
            ParticipationStatus,
            name="participation_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=ParticipationStatus.REGISTERED,
    )
