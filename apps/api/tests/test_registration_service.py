from __future__ import annotations

import uuid

import pytest
from sqlalchemy import insert, select

from app.api.v1.schemas.events import EventCreate
from app.models import Event, EventParticipant, EventParticipation
from app.models.event_participation import ParticipationStatus
from app.services import events_service, registration_service
from app.services.exceptions import BadRequestError, NotFoundError
from app.services.registration_service import RegistrationState


def _create_event(db, organizer, base_date, max_participants=None):
    payload = EventCreate(
        title="Hill Reps",
        date=base_date,
        start_time="18:30",
        meeting_point="Church Lane",
        difficulty="hard",
        event_type="training",
        max_participants=max_participants,
    )
    return events_service.create_event(db, organizer.id, payload)[0].id


def _lists(db, event_id):
    db.expire_all()
    event = events_service.get_event(db, event_id)
    return [u.id for u in event.participants], [u.id for u in event.waiting_list]


def test_joiners_beyond_capacity_go_to_waiting_list(db_session, make_user, base_date):
    organizer = make_user()
    event_id = _create_event(db_session, organizer, base_date, max_participants=2)
    riders = [make_user() for _ in range(4)]

    states = [registration_service.join_event(db_session, event_id, r.id) for r in riders]

    assert states == [
        RegistrationState.PARTICIPANT,
        RegistrationState.PARTICIPANT,
        RegistrationState.WAITING,
        RegistrationState.WAITING,
    ]
    participants, waiting = _lists(db_session, event_id)
    assert participants == [riders[0].id, riders[1].id]
    assert waiting == [riders[2].id, riders[3].id]
    assert not set(participants) & set(waiting)


def test_unlimited_event_never_uses_waiting_list(db_session, make_user, base_date):
    organizer = make_user()
    event_id = _create_event(db_session, organizer, base_date)

    for _ in range(5):
        state = registration_service.join_event(db_session, event_id, make_user().id)
        assert state is RegistrationState.PARTICIPANT

    participants, waiting = _lists(db_session, event_id)
    assert len(participants) == 5
    assert waiting == []


def test_leave_promotes_first_waiting_user(db_session, make_user, base_date):
    organizer = make_user()
    event_id = _create_event(db_session, organizer, base_date, max_participants=2)
    a, b, c, d = (make_user() for _ in range(4))
    for rider in (a, b, c, d):
        registration_service.join_event(db_session, event_id, rider.id)

    previous = registration_service.leave_event(db_session, event_id, a.id)

    assert previous is RegistrationState.PARTICIPANT
    participants, waiting = _lists(db_session, event_id)
    assert participants == [b.id, c.id]
    assert waiting == [d.id]


def test_leaving_waiting_list_does_not_promote(db_session, make_user, base_date):
    organizer = make_user()
    event_id = _create_event(db_session, organizer, base_date, max_participants=2)
    a, b, c = (make_user() for _ in range(3))
    for rider in (a, b, c):
        registration_service.join_event(db_session, event_id, rider.id)

    previous = registration_service.leave_event(db_session, event_id, c.id)

    assert previous is RegistrationState.WAITING
    participants, waiting = _lists(db_session, event_id)
    assert participants == [a.id, b.id]
    assert waiting == []


def test_double_join_is_rejected_and_state_unchanged(db_session, make_user, base_date):
    organizer = make_user()
    event_id = _create_event(db_session, organizer, base_date, max_participants=1)
    a, b = make_user(), make_user()
    registration_service.join_event(db_session, event_id, a.id)
    registration_service.join_event(db_session, event_id, b.id)

    with pytest.raises(BadRequestError) as exc:
        registration_service.join_event(db_session, event_id, b.id)

    assert exc.value.code == "ALREADY_REGISTERED"
    assert _lists(db_session, event_id) == ([a.id], [b.id])


def test_leave_without_registration_is_rejected(db_session, make_user, base_date):
    organizer = make_user()
    event_id = _create_event(db_session, organizer, base_date)

    with pytest.raises(BadRequestError) as exc:
        registration_service.leave_event(db_session, event_id, make_user().id)

    assert exc.value.code == "NOT_REGISTERED"


def test_join_missing_event(db_session, make_user):
    with pytest.raises(NotFoundError):
        registration_service.join_event(db_session, uuid.uuid4(), make_user().id)


def test_participation_audit_row_follows_join_and_leave(db_session, make_user, base_date):
    organizer = make_user()
    event_id = _create_event(db_session, organizer, base_date)
    rider = make_user()

    def audit_rows():
        return list(
            db_session.scalars(
                select(EventParticipation).where(
                    EventParticipation.event_id == event_id,
                    EventParticipation.user_id == rider.id,
                )
            )
        )

    registration_service.join_event(db_session, event_id, rider.id)
    rows = audit_rows()
    assert len(rows) == 1
    assert rows[0].status == ParticipationStatus.REGISTERED

    registration_service.leave_event(db_session, event_id, rider.id)
    assert audit_rows() == []

    # Rejoining after leaving starts a fresh registration.
    registration_service.join_event(db_session, event_id, rider.id)
    assert len(audit_rows()) == 1


def test_join_reuses_stale_audit_row(db_session, make_user, base_date):
    organizer = make_user()
    event_id = _create_event(db_session, organizer, base_date)
    rider = make_user()
    db_session.add(EventParticipation(event_id=event_id, user_id=rider.id))
    db_session.commit()

    registration_service.join_event(db_session, event_id, rider.id)

    rows = list(
        db_session.scalars(
            select(EventParticipation).where(EventParticipation.event_id == event_id)
        )
    )
    assert len(rows) == 1


def test_is_registered_predicate(db_session, make_user, base_date):
    organizer = make_user()
    event_id = _create_event(db_session, organizer, base_date, max_participants=1)
    a, b, outsider = make_user(), make_user(), make_user()
    registration_service.join_event(db_session, event_id, a.id)
    registration_service.join_event(db_session, event_id, b.id)

    db_session.expire_all()
    event = events_service.get_event(db_session, event_id)

    assert registration_service.is_registered(event, a.id)
    assert registration_service.is_registered(event, b.id)
    assert not registration_service.is_registered(event, outsider.id)
    assert registration_service.registration_state(db_session, event_id, b.id) is (
        RegistrationState.WAITING
    )


def test_deleting_event_drops_registrations(db_session, make_user, base_date):
    organizer = make_user()
    event_id = _create_event(db_session, organizer, base_date)
    rider = make_user()
    registration_service.join_event(db_session, event_id, rider.id)

    events_service.delete_event(db_session, event_id, organizer.id, organizer.role)

    assert list(db_session.scalars(select(EventParticipation))) == []


def test_slot_claim_refuses_full_event(db_session, make_user, base_date):
    organizer = make_user()
    event_id = _create_event(db_session, organizer, base_date, max_participants=2)
    seated = [make_user(), make_user()]
    db_session.execute(
        insert(EventParticipant.__table__),
        [{"event_id": event_id, "user_id": u.id} for u in seated],
    )
    db_session.commit()
    latecomer = make_user()

    event = db_session.get(Event, event_id)
    assert registration_service._claim_participant_slot(db_session, event, latecomer.id) is False
    db_session.rollback()

    state = registration_service.join_event(db_session, event_id, latecomer.id)

    assert state is RegistrationState.WAITING
    participants, waiting = _lists(db_session, event_id)
    assert len(participants) == 2
    assert waiting == [latecomer.id]
