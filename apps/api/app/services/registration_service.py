from __future__ import annotations

from enum import Enum
from typing import Any

import structlog
from sqlalchemy import Uuid, delete, func, insert, literal, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models import Event, EventParticipant, EventParticipation, EventWaitlistEntry, User
from app.models.event_participation import ParticipationStatus
from app.services.error_codes import ErrorCode
from app.services.exceptions import BadRequestError, NotFoundError

logger = structlog.get_logger(__name__)


class RegistrationState(str, Enum):
    NONE = "none"
    PARTICIPANT = "participant"
    WAITING = "waiting"


def is_registered(event: Event, user_id: Any) -> bool:
    return any(e.user_id == user_id for e in event.participant_entries) or any(
        e.user_id == user_id for e in event.waiting_entries
    )


def _lock_event(db: Session, event_id: Any) -> Event:
    event = db.scalar(select(Event).where(Event.id == event_id).with_for_update())
    if not event:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")
    return event


def _state(db: Session, event_id: Any, user_id: Any) -> RegistrationState:
    if db.scalar(
        select(EventParticipant.id).where(
            EventParticipant.event_id == event_id,
            EventParticipant.user_id == user_id,
        )
    ) is not None:
        return RegistrationState.PARTICIPANT
    if db.scalar(
        select(EventWaitlistEntry.id).where(
            EventWaitlistEntry.event_id == event_id,
            EventWaitlistEntry.user_id == user_id,
        )
    ) is not None:
        return RegistrationState.WAITING
    return RegistrationState.NONE


def registration_state(db: Session, event_id: Any, user_id: Any) -> RegistrationState:
    if db.get(Event, event_id) is None:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")
    return _state(db, event_id, user_id)


def _participant_count(event_id: Any):
    return (
        select(func.count())
        .select_from(EventParticipant)
        .where(EventParticipant.event_id == event_id)
        .scalar_subquery()
    )


def _claim_participant_slot(db: Session, event: Event, user_id: Any) -> bool:
    """Insert a participant row only while the event has room.

    The capacity check and the insert are one INSERT ... SELECT ... WHERE
    statement, so there is no window between counting and writing.
    """
    table = EventParticipant.__table__
    if event.max_participants is None:
        db.execute(insert(table).values(event_id=event.id, user_id=user_id))
        return True

    row = select(
        literal(event.id, Uuid()).label("event_id"),
        literal(user_id, Uuid()).label("user_id"),
    ).where(_participant_count(event.id) < event.max_participants)
    result = db.execute(insert(table).from_select(["event_id", "user_id"], row))
    return result.rowcount == 1


def _upsert_participation(db: Session, event_id: Any, user_id: Any) -> None:
    existing = db.scalar(
        select(EventParticipation).where(
            EventParticipation.event_id == event_id,
            EventParticipation.user_id == user_id,
        )
    )
    if existing:
        existing.status = ParticipationStatus.REGISTERED
        db.add(existing)
    else:
        db.add(
            EventParticipation(
                event_id=event_id,
                user_id=user_id,
                status=ParticipationStatus.REGISTERED,
            )
        )


def join_event(db: Session, event_id: Any, user_id: Any) -> RegistrationState:
    """Register a user as participant, or on the waiting list once full."""
    try:
        event = _lock_event(db, event_id)
        if db.get(User, user_id) is None:
            raise NotFoundError(ErrorCode.USER_NOT_FOUND.value, "user not found")

        if _state(db, event.id, user_id) is not RegistrationState.NONE:
            raise BadRequestError(
                ErrorCode.ALREADY_REGISTERED.value, "already registered for this event"
            )

        if _claim_participant_slot(db, event, user_id):
            state = RegistrationState.PARTICIPANT
        else:
            db.execute(
                insert(EventWaitlistEntry.__table__).values(event_id=event.id, user_id=user_id)
            )
            state = RegistrationState.WAITING

        _upsert_participation(db, event.id, user_id)
        db.commit()
    except IntegrityError as exc:
        # A concurrent duplicate join for the same user lost the race.
        db.rollback()
        raise BadRequestError(
            ErrorCode.ALREADY_REGISTERED.value, "already registered for this event"
        ) from exc
    except Exception:
        db.rollback()
        raise

    logger.info("event_joined", event_id=str(event_id), user_id=str(user_id), state=state.value)
    return state


def _promote_first_waiting(db: Session, event: Event) -> Any | None:
    first = db.scalar(
        select(EventWaitlistEntry)
        .where(EventWaitlistEntry.event_id == event.id)
        .order_by(EventWaitlistEntry.id.asc())
        .limit(1)
        .with_for_update()
    )
    if first is None:
        return None

    promoted_user_id = first.user_id
    if not _claim_participant_slot(db, event, promoted_user_id):
        # Capacity was lowered below the current headcount; nobody moves up.
        return None
    db.execute(
        delete(EventWaitlistEntry)
        .where(EventWaitlistEntry.id == first.id)
        .execution_options(synchronize_session=False)
    )
    db.expunge(first)
    return promoted_user_id


def leave_event(db: Session, event_id: Any, user_id: Any) -> RegistrationState:
    """Remove a registration; a freed participant slot goes to the first waiting user.

    Returns the state the user was in before leaving.
    """
    try:
        event = _lock_event(db, event_id)

        removed = db.execute(
            delete(EventParticipant)
            .where(
                EventParticipant.event_id == event.id,
                EventParticipant.user_id == user_id,
            )
            .execution_options(synchronize_session=False)
        ).rowcount
        if removed:
            previous = RegistrationState.PARTICIPANT
        else:
            removed = db.execute(
                delete(EventWaitlistEntry)
                .where(
                    EventWaitlistEntry.event_id == event.id,
                    EventWaitlistEntry.user_id == user_id,
                )
                .execution_options(synchronize_session=False)
            ).rowcount
            if not removed:
                raise BadRequestError(
                    ErrorCode.NOT_REGISTERED.value, "not registered for this event"
                )
            previous = RegistrationState.WAITING

        promoted = None
        if previous is RegistrationState.PARTICIPANT:
            promoted = _promote_first_waiting(db, event)

        db.execute(
            delete(EventParticipation)
            .where(
                EventParticipation.event_id == event.id,
                EventParticipation.user_id == user_id,
            )
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "event_left",
        event_id=str(event_id),
        user_id=str(user_id),
        previous_state=previous.value,
    )
    if promoted is not None:
        logger.info("waitlist_promoted", event_id=str(event_id), user_id=str(promoted))
    return previous
