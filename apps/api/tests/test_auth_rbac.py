from __future__ import annotations

import uuid

from fastapi.testclient import TestClient

from app.auth.jwt import create_access_token
from app.models.user import UserRole


def _event_payload(**overrides):
    payload = {
        "title": "Sunday Social",
        "date": "2030-03-03T09:00:00+00:00",
        "start_time": "09:00",
        "meeting_point": "Market Square",
        "difficulty": "easy",
        "event_type": "social",
    }
    payload.update(overrides)
    return payload


def test_role_hierarchy_is_totally_ordered():
    assert UserRole.PUBLIC < UserRole.USER < UserRole.MEMBER < UserRole.ADMIN
    assert UserRole.ADMIN.at_least(UserRole.MEMBER)
    assert not UserRole.USER.at_least(UserRole.MEMBER)
    assert max([UserRole.MEMBER, UserRole.ADMIN, UserRole.USER]) is UserRole.ADMIN


def test_missing_token_is_unauthorized(client: TestClient):
    resp = client.post("/v1/events", json=_event_payload())
    assert resp.status_code == 401


def test_garbage_token_is_unauthorized(client: TestClient):
    resp = client.post(
        "/v1/events",
        json=_event_payload(),
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert resp.status_code == 401


def test_token_for_deleted_user_is_unauthorized(client: TestClient):
    token = create_access_token(uuid.uuid4())
    resp = client.get("/v1/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_unapproved_user_cannot_create_events(client: TestClient, make_user, auth_headers):
    user = make_user(role=UserRole.USER)

    resp = client.post("/v1/events", json=_event_payload(), headers=auth_headers(user))

    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "INSUFFICIENT_ROLE"


def test_member_blocked_from_admin_routes(client: TestClient, make_user, auth_headers):
    member = make_user(role=UserRole.MEMBER)

    resp = client.get("/v1/admin/users", headers=auth_headers(member))

    assert resp.status_code == 403


def test_admin_allowed_everywhere(client: TestClient, make_user, auth_headers):
    admin = make_user(role=UserRole.ADMIN)

    users = client.get("/v1/admin/users", headers=auth_headers(admin))
    assert users.status_code == 200

    ev = client.post("/v1/events", json=_event_payload(), headers=auth_headers(admin))
    assert ev.status_code == 200


def test_role_comes_from_database_not_token(
    client: TestClient, make_user, auth_headers, db_session
):
    user = make_user(role=UserRole.MEMBER)
    headers = auth_headers(user)
    assert client.post("/v1/events", json=_event_payload(), headers=headers).status_code == 200

    user.role = UserRole.USER
    db_session.commit()

    assert client.post("/v1/events", json=_event_payload(), headers=headers).status_code == 403
