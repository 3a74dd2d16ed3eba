from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.schemas.members import UserOut
from app.auth.deps import CurrentUser
from app.core.config import settings
from app.db import get_db
from app.services import members_service

router = APIRouter(prefix="/me", tags=["me"])

DBSession = Annotated[Session, Depends(get_db)]


@router.get("", response_model=UserOut)
def me(user: CurrentUser, db: DBSession):
    members_service.refresh_active_status(db, user, settings.member_active_window_days)
    return UserOut.model_validate(user)
