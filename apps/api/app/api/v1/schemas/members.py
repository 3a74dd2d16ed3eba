from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field, field_validator, model_validator

from app.api.v1.schemas.events import SchemaBase, _assume_utc
from app.models.member import MembershipType
from app.models.user import UserRole


class MemberCreate(SchemaBase):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone: str | None = Field(default=None, max_length=50)
    emergency_contact: str | None = Field(default=None, max_length=200)
    emergency_phone: str | None = Field(default=None, max_length=50)
    membership_type: MembershipType


class MemberUpdate(SchemaBase):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=50)
    emergency_contact: str | None = Field(default=None, max_length=200)
    emergency_phone: str | None = Field(default=None, max_length=50)
    membership_type: MembershipType | None = None

    @model_validator(mode="after")
    def _reject_null_required_fields(self):
        for name in self.model_fields_set & {"first_name", "last_name", "membership_type"}:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class MemberOut(SchemaBase):
    id: UUID
    user_id: UUID
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    emergency_contact: str | None = None
    emergency_phone: str | None = None
    membership_type: MembershipType
    is_paid: bool
    is_active: bool
    join_date: datetime

    @field_validator("join_date", mode="after")
    @classmethod
    def _normalize_join_date(cls, value: datetime) -> datetime:
        return _assume_utc(value)


class PaidStatusIn(SchemaBase):
    is_paid: bool


class UserOut(SchemaBase):
    id: UUID
    email: str | None = None
    name: str | None = None
    role: UserRole
    member: MemberOut | None = None


class UserDeletedOut(SchemaBase):
    routes_reassigned: int
    events_reassigned: int
