from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.errors import http_error_from_service
from app.api.v1.schemas.events import EventOut
from app.api.v1.schemas.routes import RouteCreate, RouteCreatedOut, RouteOut
from app.auth.deps import MemberUser
from app.db import get_db
from app.models.route import Difficulty, RouteType
from app.services import events_service, routes_service
from app.services.error_codes import ErrorCode
from app.services.exceptions import NotFoundError, ServiceError

router = APIRouter(prefix="/routes", tags=["routes"])

DBSession = Annotated[Session, Depends(get_db)]


@router.get("", response_model=list[RouteOut])
def list_routes(db: DBSession):
    return [RouteOut.from_route(r) for r in routes_service.list_routes(db)]


@router.get("/search", response_model=list[RouteOut])
def search_routes(
    db: DBSession,
    q: str | None = Query(default=None, min_length=1),
    difficulty: Difficulty | None = None,
    route_type: RouteType | None = None,
):
    routes = routes_service.search_routes(db, term=q, difficulty=difficulty, route_type=route_type)
    return [RouteOut.from_route(r) for r in routes]


@router.get("/{route_id}", response_model=RouteOut)
def get_route(route_id: uuid.UUID, db: DBSession):
    route = routes_service.get_route(db, route_id)
    if route is None:
        raise http_error_from_service(
            NotFoundError(ErrorCode.ROUTE_NOT_FOUND.value, "route not found")
        )
    return RouteOut.from_route(route)


@router.get("/{route_id}/events", response_model=list[EventOut])
def list_route_events(route_id: uuid.UUID, db: DBSession):
    try:
        events = events_service.list_events_for_route(db, route_id)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return [EventOut.from_event(e) for e in events]


@router.post("", response_model=RouteCreatedOut)
def create_route(payload: RouteCreate, db: DBSession, user: MemberUser):
    try:
        route = routes_service.create_route(db, user.id, payload)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return RouteCreatedOut(route_id=route.id)
