from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.api.v1.schemas.routes import RouteCreate
from app.models import Route, User
from app.models.route import Difficulty, RouteType
from app.services.error_codes import ErrorCode
from app.services.exceptions import NotFoundError

logger = structlog.get_logger(__name__)


def _route_load_options():
    return (selectinload(Route.uploader).selectinload(User.member),)


def create_route(db: Session, uploader_id: Any, payload: RouteCreate) -> Route:
    if db.get(User, uploader_id) is None:
        raise NotFoundError(ErrorCode.USER_NOT_FOUND.value, "user not found")

    data = payload.model_dump()
    if data["elevation_ascent"] is None:
        data["elevation_ascent"] = data["elevation"]
    if data["elevation_descent"] is None:
        data["elevation_descent"] = 0

    route = Route(**data, uploaded_by=uploader_id, event_count=0)
    db.add(route)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(route)

    logger.info("route_created", route_id=str(route.id), uploaded_by=str(uploader_id))
    return route


def get_route(db: Session, route_id: Any) -> Route | None:
    return db.scalar(select(Route).where(Route.id == route_id).options(*_route_load_options()))


def list_routes(db: Session) -> list[Route]:
    stmt = select(Route).order_by(Route.upload_date.desc()).options(*_route_load_options())
    return list(db.scalars(stmt))


def search_routes(
    db: Session,
    term: str | None = None,
    difficulty: Difficulty | None = None,
    route_type: RouteType | None = None,
) -> list[Route]:
    stmt = select(Route)
    if difficulty is not None:
        stmt = stmt.where(Route.difficulty == difficulty)
    if route_type is not None:
        stmt = stmt.where(Route.route_type == route_type)
    if term and term.strip():
        stmt = stmt.where(Route.name.ilike(f"%{term.strip()}%"))

    stmt = stmt.order_by(Route.upload_date.desc()).options(*_route_load_options())
    return list(db.scalars(stmt))
