from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload

from app.api.v1.schemas.events import EventCreate, EventUpdate
from app.models import Event, EventParticipant, EventWaitlistEntry, Route, User
from app.models.event import EventStatus
from app.models.user import UserRole
from app.services import route_counts
from app.services.error_codes import ErrorCode
from app.services.exceptions import NotFoundError, PermissionDeniedError, ServiceError

logger = structlog.get_logger(__name__)

# Columns that identify a recurring series. Difficulty, type and capacity are not part of it.
SERIES_IDENTITY_COLUMNS = ("title", "organizer_id", "start_time", "meeting_point", "route_id")


def _event_load_options():
    return (
        selectinload(Event.route),
        selectinload(Event.organizer).selectinload(User.member),
        selectinload(Event.participant_entries)
        .selectinload(EventParticipant.user)
        .selectinload(User.member),
        selectinload(Event.waiting_entries)
        .selectinload(EventWaitlistEntry.user)
        .selectinload(User.member),
    )


def _require_manage_permission(
    event: Event, caller_id: Any, caller_role: UserRole
) -> None:
    if caller_role == UserRole.ADMIN:
        return
    if event.organizer_id != caller_id:
        raise PermissionDeniedError(
            ErrorCode.NOT_EVENT_MANAGER.value,
            "only the organizer or an admin can manage this event",
        )


def _require_route(db: Session, route_id: Any) -> None:
    if route_id is not None and db.get(Route, route_id) is None:
        raise NotFoundError(ErrorCode.ROUTE_NOT_FOUND.value, "route not found")


def occurrence_dates(base: datetime, interval_weeks: int, occurrences: int) -> list[datetime]:
    step = timedelta(weeks=interval_weeks)
    return [base + step * k for k in range(occurrences)]


def get_event(db: Session, event_id: Any) -> Event | None:
    return db.scalar(select(Event).where(Event.id == event_id).options(*_event_load_options()))


def list_events(db: Session) -> list[Event]:
    return list(db.scalars(select(Event).order_by(Event.date.asc()).options(*_event_load_options())))


def list_upcoming_events(db: Session, limit: int, now: datetime | None = None) -> list[Event]:
    now = now or datetime.now(timezone.utc)
    stmt = (
        select(Event)
        .where(Event.date >= now)
        .order_by(Event.date.asc())
        .limit(limit)
        .options(*_event_load_options())
    )
    return list(db.scalars(stmt))


def list_events_for_route(db: Session, route_id: Any) -> list[Event]:
    if db.get(Route, route_id) is None:
        raise NotFoundError(ErrorCode.ROUTE_NOT_FOUND.value, "route not found")
    stmt = (
        select(Event)
        .where(Event.route_id == route_id)
        .order_by(Event.date.asc())
        .options(*_event_load_options())
    )
    return list(db.scalars(stmt))


def create_event(db: Session, organizer_id: Any, payload: EventCreate) -> list[Event]:
    """Create one event, or a whole series when a recurrence is given.

    Every occurrence copies the same fields; only the date moves forward by
    ``interval_weeks`` each time. The route counter is bumped once by the
    number of rows actually inserted.
    """
    # Role is checked by the caller.
    if db.get(User, organizer_id) is None:
        raise NotFoundError(ErrorCode.USER_NOT_FOUND.value, "organizer not found")
    _require_route(db, payload.route_id)

    count = payload.occurrences
    interval = payload.recurrence.interval_weeks if count > 1 else 0
    fields = payload.model_dump(exclude={"recurrence", "date"})

    events = [
        Event(**fields, date=date, organizer_id=organizer_id, status=EventStatus.SCHEDULED)
        for date in occurrence_dates(payload.date, interval, count)
    ]
    try:
        db.add_all(events)
        db.flush()
        created_ids = [e.id for e in events]
        route_counts.adjust_event_count(db, payload.route_id, len(created_ids))
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "event_created",
        event_ids=[str(i) for i in created_ids],
        count=len(created_ids),
        organizer_id=str(organizer_id),
        route_id=str(payload.route_id) if payload.route_id else None,
    )
    return events


def update_event(
    db: Session,
    event_id: Any,
    caller_id: Any,
    caller_role: UserRole,
    patch: EventUpdate,
) -> Event:
    event = db.scalar(select(Event).where(Event.id == event_id).with_for_update())
    if not event:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")

    _require_manage_permission(event, caller_id, caller_role)

    patch_data = patch.model_dump(exclude_unset=True)
    route_changed = "route_id" in patch_data and patch_data["route_id"] != event.route_id
    try:
        if route_changed:
            _require_route(db, patch_data["route_id"])
            route_counts.move_event_between_routes(db, event.route_id, patch_data["route_id"])
        for key, value in patch_data.items():
            setattr(event, key, value)
        db.add(event)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "event_updated",
        event_id=str(event_id),
        fields=sorted(patch_data),
        route_changed=route_changed,
    )
    return event


def find_future_series_events(db: Session, event: Event) -> list[Event]:
    """Strictly later, non-cancelled events sharing the series identity."""
    stmt = select(Event).where(
        Event.id != event.id,
        Event.date > event.date,
        Event.status != EventStatus.CANCELLED,
    )
    for column in SERIES_IDENTITY_COLUMNS:
        value = getattr(event, column)
        attr = getattr(Event, column)
        stmt = stmt.where(attr.is_(None) if value is None else attr == value)
    return list(db.scalars(stmt.order_by(Event.date.asc()).with_for_update()))


def delete_event(
    db: Session,
    event_id: Any,
    caller_id: Any,
    caller_role: UserRole,
    delete_future_events: bool = False,
) -> int:
    event = db.scalar(select(Event).where(Event.id == event_id).with_for_update())
    if not event:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")

    _require_manage_permission(event, caller_id, caller_role)

    doomed = [event]
    if delete_future_events:
        doomed.extend(find_future_series_events(db, event))

    ids = [e.id for e in doomed]
    deltas = route_counts.deltas_for_removed(e.route_id for e in doomed)

    try:
        result = db.execute(
            delete(Event)
            .where(Event.id.in_(ids))
            .execution_options(synchronize_session=False)
        )
        # Rows were locked above, so anything short of a full delete means
        # another writer got in first.
        if result.rowcount != len(ids):
            raise ServiceError(
                ErrorCode.CONCURRENT_MODIFICATION.value,
                f"expected to delete {len(ids)} events, deleted {result.rowcount}",
            )
        route_counts.apply_event_count_deltas(db, deltas)
        db.commit()
    except Exception:
        db.rollback()
        raise

    for e in doomed:
        db.expunge(e)

    logger.info(
        "event_series_deleted" if delete_future_events else "event_deleted",
        event_id=str(event_id),
        deleted_count=len(ids),
        routes_adjusted={str(k): v for k, v in deltas.items()},
    )
    return len(ids)
