from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy import Boolean, DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from app.models.user import User


class MembershipType(str, Enum):
    FULL = "full"
    SOCIAL = "social"
    JUNIOR = "junior"


class Member(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "members"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    emergency_contact: Mapped[str | None] = mapped_column(String(200), nullable=True)
    emergency_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    membership_type: Mapped[MembershipType] = mapped_column(
        sa.Enum(
            MembershipType,
            name="membership_type",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=MembershipType.FULL,
    )
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Derived from users.last_login_at; refreshed when the profile is read.
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    join_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    user: Mapped[User] = relationship(back_populates="member")
