from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from app.api.v1.schemas.members import MemberCreate, MemberUpdate
from app.models import Event, Member, Route, User
from app.models.user import UserRole
from app.services.error_codes import ErrorCode
from app.services.exceptions import BadRequestError, NotFoundError, PermissionDeniedError

logger = structlog.get_logger(__name__)


def _is_recent_login(last_login_at: datetime | None, window_days: int, now: datetime) -> bool:
    if last_login_at is None:
        return False
    if last_login_at.tzinfo is None:
        last_login_at = last_login_at.replace(tzinfo=timezone.utc)
    return last_login_at >= now - timedelta(days=window_days)


def refresh_active_status(
    db: Session, user: User, window_days: int, now: datetime | None = None
) -> Member | None:
    member = user.member
    if member is None:
        return None

    is_active = _is_recent_login(user.last_login_at, window_days, now or datetime.now(timezone.utc))
    if member.is_active != is_active:
        member.is_active = is_active
        db.add(member)
        db.commit()
        db.refresh(member)
    return member


def list_users(db: Session) -> list[User]:
    stmt = select(User).order_by(User.created_at.desc()).options(selectinload(User.member))
    return list(db.scalars(stmt))


def list_members(db: Session) -> list[Member]:
    return list(db.scalars(select(Member).order_by(Member.join_date.desc())))


def create_member(db: Session, user: User, payload: MemberCreate) -> Member:
    existing = db.scalar(select(Member).where(Member.user_id == user.id))
    if existing:
        raise BadRequestError(
            ErrorCode.MEMBER_ALREADY_EXISTS.value, "member profile already exists"
        )

    member = Member(user_id=user.id, is_active=True, **payload.model_dump())
    db.add(member)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(member)

    logger.info("member_created", member_id=str(member.id), user_id=str(user.id))
    return member


def update_member(db: Session, member_id: Any, caller_id: Any, patch: MemberUpdate) -> Member:
    member = db.get(Member, member_id)
    if not member:
        raise NotFoundError(ErrorCode.MEMBER_NOT_FOUND.value, "member not found")
    if member.user_id != caller_id:
        raise PermissionDeniedError(
            ErrorCode.NOT_MEMBER_OWNER.value, "not authorized to update this member"
        )

    for key, value in patch.model_dump(exclude_unset=True).items():
        setattr(member, key, value)

    db.add(member)
    db.commit()
    db.refresh(member)
    return member


def set_paid_status(db: Session, member_id: Any, is_paid: bool) -> Member:
    member = db.get(Member, member_id)
    if not member:
        raise NotFoundError(ErrorCode.MEMBER_NOT_FOUND.value, "member not found")

    member.is_paid = is_paid
    db.add(member)
    db.commit()
    db.refresh(member)

    logger.info("member_paid_status_changed", member_id=str(member_id), is_paid=is_paid)
    return member


def approve_user(db: Session, user_id: Any) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError(ErrorCode.USER_NOT_FOUND.value, "user not found")
    if user.role.at_least(UserRole.MEMBER):
        raise BadRequestError(ErrorCode.USER_ALREADY_APPROVED.value, "user is already approved")

    user.role = UserRole.MEMBER
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("user_approved", user_id=str(user_id))
    return user


def delete_user(db: Session, user_id: Any, admin_id: Any) -> tuple[int, int]:
    """Delete a user, handing their routes and organized events to ``admin_id``.

    Events are reassigned rather than deleted so route event counts stay untouched.
    Returns ``(routes_reassigned, events_reassigned)``.
    """
    if user_id == admin_id:
        raise BadRequestError(
            ErrorCode.CANNOT_DELETE_SELF.value, "you cannot delete your own account"
        )

    user = db.get(User, user_id)
    if not user:
        raise NotFoundError(ErrorCode.USER_NOT_FOUND.value, "user not found")

    try:
        routes = db.execute(
            update(Route)
            .where(Route.uploaded_by == user_id)
            .values(uploaded_by=admin_id)
            .execution_options(synchronize_session=False)
        ).rowcount
        events = db.execute(
            update(Event)
            .where(Event.organizer_id == user_id)
            .values(organizer_id=admin_id)
            .execution_options(synchronize_session=False)
        ).rowcount
        # Member profile, memberships and audit rows go with the user (ON DELETE CASCADE).
        db.delete(user)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "user_deleted",
        user_id=str(user_id),
        deleted_by=str(admin_id),
        routes_reassigned=routes,
        events_reassigned=events,
    )
    return routes, events
