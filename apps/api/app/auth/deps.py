from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.auth.jwt import verify_access_token
from app.db import get_db
from app.models import User
from app.models.user import UserRole

DBSession = Annotated[Session, Depends(get_db)]

logger = structlog.get_logger(__name__)


def _unauthorized(detail: str = "unauthorized") -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(request: Request, db: DBSession) -> User:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        raise _unauthorized("missing bearer token")

    token = auth.removeprefix("Bearer ").strip()
    try:
        user_id = verify_access_token(token)
    except ValueError as exc:
        raise _unauthorized(str(exc)) from None

    # The stored role wins over anything the token might claim.
    user = db.scalar(select(User).where(User.id == user_id).options(selectinload(User.member)))
    if not user:
        logger.warning("token_user_missing", user_id=str(user_id))
        raise _unauthorized("user not found")

    structlog.contextvars.bind_contextvars(user_id=str(user.id))
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def require_role(min_role: UserRole):
    def _dep(user: CurrentUser) -> User:
        if not user.role.at_least(min_role):
            raise HTTPException(
                status_code=403,
                detail={
                    "code": "INSUFFICIENT_ROLE",
                    "message": f"{min_role.value} access required",
                },
            )
        return user

    return _dep


UserAccount = Annotated[User, Depends(require_role(UserRole.USER))]
MemberUser = Annotated[User, Depends(require_role(UserRole.MEMBER))]
AdminUser = Annotated[User, Depends(require_role(UserRole.ADMIN))]
