from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.errors import http_error_from_service
from app.api.v1.schemas.members import MemberOut, PaidStatusIn, UserDeletedOut, UserOut
from app.api.v1.schemas.routes import RouteRecountOut
from app.auth.deps import AdminUser, require_role
from app.db import get_db
from app.models.user import UserRole
from app.services import members_service, route_counts
from app.services.exceptions import ServiceError

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_role(UserRole.ADMIN))],
)

DBSession = Annotated[Session, Depends(get_db)]


@router.get("/users", response_model=list[UserOut])
def list_users(db: DBSession):
    return members_service.list_users(db)


@router.post("/users/{user_id}/approve", response_model=UserOut)
def approve_user(user_id: uuid.UUID, db: DBSession):
    try:
        return members_service.approve_user(db, user_id)
    except ServiceError as err:
        raise http_error_from_service(err) from err


@router.delete("/users/{user_id}", response_model=UserDeletedOut)
def delete_user(user_id: uuid.UUID, db: DBSession, admin: AdminUser):
    try:
        routes, events = members_service.delete_user(db, user_id, admin.id)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return UserDeletedOut(routes_reassigned=routes, events_reassigned=events)


@router.patch("/members/{member_id}/paid", response_model=MemberOut)
def set_paid_status(member_id: uuid.UUID, payload: PaidStatusIn, db: DBSession):
    try:
        return members_service.set_paid_status(db, member_id, payload.is_paid)
    except ServiceError as err:
        raise http_error_from_service(err) from err


@router.post("/routes/recount", response_model=RouteRecountOut)
def recount_route_event_counts(db: DBSession):
    try:
        drifted = route_counts.recount_event_counts(db)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return RouteRecountOut(repaired={rid: actual for rid, (_, actual) in drifted.items()})
