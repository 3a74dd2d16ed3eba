from __future__ import annotations

import os
import tempfile
import uuid
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

# Ensure settings are in place before app import
_DB_PATH = os.path.join(tempfile.gettempdir(), f"clubride_test_{os.getpid()}.db")
os.environ.setdefault("DATABASE_URL", f"sqlite+pysqlite:///{_DB_PATH}")
os.environ.setdefault("JWT_SECRET", "test_jwt_secret_32_chars_minimum")
os.environ.setdefault("ENV", "test")
os.environ.setdefault("CREATE_SCHEMA_ON_STARTUP", "false")
os.environ.setdefault("METRICS_ENABLED", "false")

from app.auth.jwt import create_access_token  # noqa: E402
from app.db import SessionLocal, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Base, Route, User  # noqa: E402
from app.models.route import Difficulty, RouteType  # noqa: E402
from app.models.user import UserRole  # noqa: E402


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def clean_db():
    # Ensure a clean slate for each test
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def make_user(db_session):
    def _make(role: UserRole = UserRole.MEMBER, email: str | None = None) -> User:
        user = User(
            email=email or f"{uuid.uuid4().hex[:10]}@example.com",
            name="Test Rider",
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_route(db_session):
    def _make(uploader: User, name: str = "Peak Loop") -> Route:
        route = Route(
            name=name,
            distance=64.2,
            elevation=980,
            difficulty=Difficulty.HARD,
            route_type=RouteType.ROAD,
            start_location="Borrowash",
            uploaded_by=uploader.id,
            event_count=0,
        )
        db_session.add(route)
        db_session.commit()
        db_session.refresh(route)
        return route

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


@pytest.fixture
def base_date() -> datetime:
    return datetime(2030, 1, 1, 9, 0, tzinfo=timezone.utc)
