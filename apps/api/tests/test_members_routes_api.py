from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient
from sqlalchemy import update

from app.models import Event, Member, Route, User
from app.models.user import UserRole


def _route_payload(**overrides):
    payload = {
        "name": "Derwent Valley Loop",
        "distance": 72.5,
        "elevation": 1150,
        "difficulty": "hard",
        "route_type": "road",
        "start_location": "Belper",
        "tags": ["hills", "cafe"],
    }
    payload.update(overrides)
    return payload


def _member_payload(**overrides):
    payload = {
        "first_name": "Ada",
        "last_name": "Cole",
        "email": "ada@example.com",
        "membership_type": "full",
    }
    payload.update(overrides)
    return payload


def test_route_create_defaults_and_event_count(client: TestClient, make_user, auth_headers):
    member = make_user()
    headers = auth_headers(member)

    created = client.post("/v1/routes", json=_route_payload(), headers=headers)
    assert created.status_code == 200
    route_id = created.json()["route_id"]

    route = client.get(f"/v1/routes/{route_id}").json()
    assert route["elevation_ascent"] == 1150
    assert route["elevation_descent"] == 0
    assert route["event_count"] == 0
    assert route["uploader_name"] == member.email

    client.post(
        "/v1/events",
        json={
            "title": "Valley Ride",
            "date": "2030-05-01T08:00:00+00:00",
            "start_time": "08:00",
            "meeting_point": "Belper Mill",
            "difficulty": "hard",
            "event_type": "group_ride",
            "route_id": route_id,
            "recurrence": {"interval_weeks": 2, "occurrences": 2},
        },
        headers=headers,
    )

    assert client.get(f"/v1/routes/{route_id}").json()["event_count"] == 2
    assert len(client.get(f"/v1/routes/{route_id}/events").json()) == 2


def test_unapproved_user_cannot_upload_route(client: TestClient, make_user, auth_headers):
    resp = client.post(
        "/v1/routes", json=_route_payload(), headers=auth_headers(make_user(role=UserRole.USER))
    )
    assert resp.status_code == 403


def test_route_search_filters(client: TestClient, make_user, auth_headers):
    headers = auth_headers(make_user())
    client.post("/v1/routes", json=_route_payload(), headers=headers)
    client.post(
        "/v1/routes",
        json=_route_payload(name="Gravel Grinder", route_type="gravel", difficulty="moderate"),
        headers=headers,
    )

    by_name = client.get("/v1/routes/search", params={"q": "derwent"}).json()
    assert [r["name"] for r in by_name] == ["Derwent Valley Loop"]

    by_type = client.get("/v1/routes/search", params={"route_type": "gravel"}).json()
    assert [r["name"] for r in by_type] == ["Gravel Grinder"]

    assert len(client.get("/v1/routes").json()) == 2


def test_missing_route_is_404(client: TestClient):
    missing = "00000000-0000-0000-0000-000000000000"
    assert client.get(f"/v1/routes/{missing}").status_code == 404
    resp = client.get(f"/v1/routes/{missing}/events")
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "ROUTE_NOT_FOUND"


def test_member_profile_create_and_duplicate(client: TestClient, make_user, auth_headers):
    applicant = make_user(role=UserRole.USER)
    headers = auth_headers(applicant)

    created = client.post("/v1/members", json=_member_payload(), headers=headers)
    assert created.status_code == 200
    body = created.json()
    assert body["user_id"] == str(applicant.id)
    assert body["is_paid"] is False
    assert body["is_active"] is True

    dup = client.post("/v1/members", json=_member_payload(), headers=headers)
    assert dup.status_code == 400
    assert dup.json()["detail"]["code"] == "MEMBER_ALREADY_EXISTS"


def test_member_update_is_owner_only(client: TestClient, make_user, auth_headers):
    owner, other = make_user(), make_user()
    member_id = client.post(
        "/v1/members", json=_member_payload(), headers=auth_headers(owner)
    ).json()["id"]

    blocked = client.patch(
        f"/v1/members/{member_id}", json={"phone": "0700"}, headers=auth_headers(other)
    )
    assert blocked.status_code == 403
    assert blocked.json()["detail"]["code"] == "NOT_MEMBER_OWNER"

    ok = client.patch(
        f"/v1/members/{member_id}",
        json={"phone": "0700", "membership_type": "social"},
        headers=auth_headers(owner),
    )
    assert ok.status_code == 200
    assert ok.json()["phone"] == "0700"
    assert ok.json()["membership_type"] == "social"
    assert ok.json()["first_name"] == "Ada"


def test_event_organizer_name_uses_member_profile(client: TestClient, make_user, auth_headers):
    organizer = make_user()
    headers = auth_headers(organizer)
    client.post("/v1/members", json=_member_payload(), headers=headers)

    event_id = client.post(
        "/v1/events",
        json={
            "title": "Coffee Spin",
            "date": "2030-06-01T09:00:00+00:00",
            "start_time": "09:00",
            "meeting_point": "Bandstand",
            "difficulty": "easy",
            "event_type": "social",
        },
        headers=headers,
    ).json()["event_id"]

    assert client.get(f"/v1/events/{event_id}").json()["organizer_name"] == "Ada Cole"


def test_me_refreshes_active_flag(client: TestClient, make_user, auth_headers, db_session):
    user = make_user()
    headers = auth_headers(user)
    member_id = client.post("/v1/members", json=_member_payload(), headers=headers).json()["id"]

    stale = datetime.now(timezone.utc) - timedelta(days=90)
    db_session.execute(update(User).where(User.id == user.id).values(last_login_at=stale))
    db_session.commit()

    body = client.get("/v1/me", headers=headers).json()
    assert body["member"]["id"] == member_id
    assert body["member"]["is_active"] is False


def test_admin_approves_user_and_toggles_paid(client: TestClient, make_user, auth_headers):
    admin = make_user(role=UserRole.ADMIN)
    applicant = make_user(role=UserRole.USER)
    admin_headers = auth_headers(admin)
    member_id = client.post(
        "/v1/members", json=_member_payload(), headers=auth_headers(applicant)
    ).json()["id"]

    approved = client.post(f"/v1/admin/users/{applicant.id}/approve", headers=admin_headers)
    assert approved.status_code == 200
    assert approved.json()["role"] == "member"

    again = client.post(f"/v1/admin/users/{applicant.id}/approve", headers=admin_headers)
    assert again.status_code == 400
    assert again.json()["detail"]["code"] == "USER_ALREADY_APPROVED"

    paid = client.patch(
        f"/v1/admin/members/{member_id}/paid", json={"is_paid": True}, headers=admin_headers
    )
    assert paid.status_code == 200
    assert paid.json()["is_paid"] is True

    members = client.get("/v1/members", headers=auth_headers(applicant)).json()
    assert [m["id"] for m in members] == [member_id]


def test_admin_delete_user_reassigns_routes_and_events(
    client: TestClient, make_user, make_route, auth_headers, db_session
):
    admin = make_user(role=UserRole.ADMIN)
    leaver = make_user()
    route = make_route(leaver)
    leaver_headers = auth_headers(leaver)
    client.post("/v1/members", json=_member_payload(), headers=leaver_headers)
    event_id = client.post(
        "/v1/events",
        json={
            "title": "Farewell Ride",
            "date": "2030-07-01T09:00:00+00:00",
            "start_time": "09:00",
            "meeting_point": "Bandstand",
            "difficulty": "easy",
            "event_type": "social",
            "route_id": str(route.id),
        },
        headers=leaver_headers,
    ).json()["event_id"]

    resp = client.delete(f"/v1/admin/users/{leaver.id}", headers=auth_headers(admin))

    assert resp.status_code == 200
    assert resp.json() == {"routes_reassigned": 1, "events_reassigned": 1}

    db_session.expire_all()
    assert db_session.get(Route, route.id).uploaded_by == admin.id
    assert db_session.get(Route, route.id).event_count == 1
    assert db_session.get(Event, uuid.UUID(event_id)).organizer_id == admin.id
    assert db_session.query(Member).count() == 0


def test_admin_cannot_delete_self(client: TestClient, make_user, auth_headers):
    admin = make_user(role=UserRole.ADMIN)

    resp = client.delete(f"/v1/admin/users/{admin.id}", headers=auth_headers(admin))

    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "CANNOT_DELETE_SELF"


def test_admin_recount_repairs_drift(
    client: TestClient, make_user, make_route, auth_headers, db_session
):
    admin = make_user(role=UserRole.ADMIN)
    route = make_route(admin)
    db_session.execute(update(Route).where(Route.id == route.id).values(event_count=5))
    db_session.commit()

    resp = client.post("/v1/admin/routes/recount", headers=auth_headers(admin))

    assert resp.status_code == 200
    assert resp.json() == {"repaired": {str(route.id): 0}}
    db_session.expire_all()
    assert db_session.get(Route, route.id).event_count == 0
