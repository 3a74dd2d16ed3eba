from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from app.models.user import User


class Difficulty(str, Enum):
    EASY = "easy"
    MODERATE = "moderate"
    HARD = "hard"
    EXPERT = "expert"


class RouteType(str, Enum):
    ROAD = "road"
    MOUNTAIN = "mountain"
    GRAVEL = "gravel"
    MIXED = "mixed"


def _enum_values(enum_cls) -> list[str]:
    return [m.value for m in enum_cls]


class Route(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "routes"
    __table_args__ = (
        sa.CheckConstraint("event_count >= 0", name="ck_routes_event_count_non_negative"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    distance: Mapped[float] = mapped_column(Float, nullable=False)
    elevation: Mapped[float] = mapped_column(Float, nullable=False)
    elevation_ascent: Mapped[float | None] = mapped_column(Float, nullable=True)
    elevation_descent: Mapped[float | None] = mapped_column(Float, nullable=True)
    difficulty: Mapped[Difficulty] = mapped_column(
        sa.Enum(Difficulty, name="difficulty", values_callable=_enum_values),
        nullable=False,
    )
    route_type: Mapped[RouteType] = mapped_column(
        sa.Enum(RouteType, name="route_type", values_callable=_enum_values),
        nullable=False,
    )

    # Object-store key of the GPX file; bytes live outside the database.
    gpx_object_name: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    gpx_file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    start_location: Mapped[str] = mapped_column(String(300), nullable=False)
    end_location: Mapped[str | None] = mapped_column(String(300), nullable=True)
    tags: Mapped[list[str]] = mapped_column(sa.JSON, nullable=False, default=list)

    uploaded_by: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    upload_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )

    # Denormalized: number of events whose route_id points here.
    # Only app.services.route_counts writes this column.
    event_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )

    uploader: Mapped[User] = relationship(foreign_keys=[uploaded_by])
