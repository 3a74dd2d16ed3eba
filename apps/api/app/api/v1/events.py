from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.errors import http_error_from_service
from app.api.v1.schemas.events import (
    EventCreate,
    EventCreatedOut,
    EventDeletedOut,
    EventOut,
    EventUpdate,
    RegistrationOut,
    RegistrationStatus,
)
from app.auth.deps import CurrentUser, MemberUser
from app.core.config import settings
from app.db import get_db
from app.services import events_service, registration_service
from app.services.error_codes import ErrorCode
from app.services.exceptions import NotFoundError, ServiceError

router = APIRouter(prefix="/events", tags=["events"])

DBSession = Annotated[Session, Depends(get_db)]


def _event_out(db: Session, event_id: uuid.UUID) -> EventOut:
    event = events_service.get_event(db, event_id)
    if event is None:
        raise http_error_from_service(
            NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")
        )
    return EventOut.from_event(event)


@router.get("", response_model=list[EventOut])
def list_events(db: DBSession):
    return [EventOut.from_event(e) for e in events_service.list_events(db)]


@router.get("/upcoming", response_model=list[EventOut])
def list_upcoming_events(db: DBSession):
    events = events_service.list_upcoming_events(db, limit=settings.upcoming_events_limit)
    return [EventOut.from_event(e) for e in events]


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: uuid.UUID, db: DBSession):
    return _event_out(db, event_id)


@router.post("", response_model=EventCreatedOut)
def create_event(payload: EventCreate, db: DBSession, user: MemberUser):
    try:
        events = events_service.create_event(db, user.id, payload)
    except ServiceError as err:
        raise http_error_from_service(err) from err

    ids = [e.id for e in events]
    return EventCreatedOut(event_id=ids[0], event_ids=ids, count=len(ids))


@router.patch("/{event_id}", response_model=EventOut)
def update_event(event_id: uuid.UUID, payload: EventUpdate, db: DBSession, user: CurrentUser):
    try:
        events_service.update_event(db, event_id, user.id, user.role, payload)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return _event_out(db, event_id)


@router.delete("/{event_id}", response_model=EventDeletedOut)
def delete_event(
    event_id: uuid.UUID,
    db: DBSession,
    user: CurrentUser,
    delete_future_events: bool = Query(default=False),
):
    try:
        deleted = events_service.delete_event(
            db, event_id, user.id, user.role, delete_future_events
        )
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return EventDeletedOut(deleted_count=deleted)


@router.post("/{event_id}/join", response_model=RegistrationOut)
def join_event(event_id: uuid.UUID, db: DBSession, user: MemberUser):
    try:
        state = registration_service.join_event(db, event_id, user.id)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return RegistrationOut(
        event_id=event_id, user_id=user.id, status=RegistrationStatus(state.value)
    )


@router.post("/{event_id}/leave", response_model=RegistrationOut)
def leave_event(event_id: uuid.UUID, db: DBSession, user: MemberUser):
    try:
        registration_service.leave_event(db, event_id, user.id)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return RegistrationOut(event_id=event_id, user_id=user.id, status=RegistrationStatus.NONE)


@router.get("/{event_id}/registration", response_model=RegistrationOut)
def my_registration(event_id: uuid.UUID, db: DBSession, user: CurrentUser):
    try:
        state = registration_service.registration_state(db, event_id, user.id)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return RegistrationOut(
        event_id=event_id, user_id=user.id, status=RegistrationStatus(state.value)
    )
