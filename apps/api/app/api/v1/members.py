from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.errors import http_error_from_service
from app.api.v1.schemas.members import MemberCreate, MemberOut, MemberUpdate
from app.auth.deps import MemberUser, UserAccount
from app.db import get_db
from app.services import members_service
from app.services.exceptions import ServiceError

router = APIRouter(prefix="/members", tags=["members"])

DBSession = Annotated[Session, Depends(get_db)]


@router.get("", response_model=list[MemberOut])
def list_members(db: DBSession, _user: MemberUser):
    return members_service.list_members(db)


@router.post("", response_model=MemberOut)
def create_member(payload: MemberCreate, db: DBSession, user: UserAccount):
    try:
        return members_service.create_member(db, user, payload)
    except ServiceError as err:
        raise http_error_from_service(err) from err


@router.patch("/{member_id}", response_model=MemberOut)
def update_member(member_id: uuid.UUID, payload: MemberUpdate, db: DBSession, user: UserAccount):
    try:
        return members_service.update_member(db, member_id, user.id, payload)
    except ServiceError as err:
        raise http_error_from_service(err) from err
