from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from app.api.v1.schemas.events import SchemaBase, _assume_utc
from app.models import Route
from app.models.route import Difficulty, RouteType


class RouteCreate(SchemaBase):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    distance: float = Field(ge=0)
    elevation: float = Field(ge=0)
    elevation_ascent: float | None = Field(default=None, ge=0)
    elevation_descent: float | None = Field(default=None, ge=0)
    difficulty: Difficulty
    gpx_object_name: str | None = Field(default=None, max_length=1024)
    gpx_file_name: str | None = Field(default=None, max_length=255)
    start_location: str = Field(min_length=1, max_length=300)
    end_location: str | None = Field(default=None, max_length=300)
    route_type: RouteType
    tags: list[str] = Field(default_factory=list)


class RouteOut(SchemaBase):
    id: UUID
    name: str
    description: str | None = None
    distance: float
    elevation: float
    elevation_ascent: float
    elevation_descent: float
    difficulty: Difficulty
    route_type: RouteType
    gpx_object_name: str | None = None
    gpx_file_name: str | None = None
    start_location: str
    end_location: str | None = None
    tags: list[str]
    uploaded_by: UUID
    upload_date: datetime
    event_count: int
    uploader_name: str

    @field_validator("upload_date", mode="after")
    @classmethod
    def _normalize_upload_date(cls, value: datetime) -> datetime:
        return _assume_utc(value)

    @classmethod
    def from_route(cls, route: Route) -> RouteOut:
        return cls(
            id=route.id,
            name=route.name,
            description=route.description,
            distance=route.distance,
            elevation=route.elevation,
            elevation_ascent=(
                route.elevation_ascent if route.elevation_ascent is not None else route.elevation
            ),
            elevation_descent=route.elevation_descent or 0,
            difficulty=route.difficulty,
            route_type=route.route_type,
            gpx_object_name=route.gpx_object_name,
            gpx_file_name=route.gpx_file_name,
            start_location=route.start_location,
            end_location=route.end_location,
            tags=list(route.tags or []),
            uploaded_by=route.uploaded_by,
            upload_date=route.upload_date,
            event_count=route.event_count,
            uploader_name=route.uploader.display_name,
        )


class RouteCreatedOut(SchemaBase):
    route_id: UUID


class RouteRecountOut(SchemaBase):
    repaired: dict[UUID, int]
