from app.api.v1.schemas.events import (
    EventCreate,
    EventCreatedOut,
    EventDeletedOut,
    EventOut,
    EventUpdate,
    RecurrenceIn,
    RegistrationOut,
    RegistrationStatus,
)
from app.api.v1.schemas.members import (
    MemberCreate,
    MemberOut,
    MemberUpdate,
    PaidStatusIn,
    UserDeletedOut,
    UserOut,
)
from app.api.v1.schemas.routes import RouteCreate, RouteCreatedOut, RouteOut, RouteRecountOut

__all__ = [
    "EventCreate",
    "EventCreatedOut",
    "EventDeletedOut",
    "EventUpdate",
    "EventOut",
    "RecurrenceIn",
    "RegistrationOut",
    "RegistrationStatus",
    "MemberCreate",
    "MemberOut",
    "MemberUpdate",
    "PaidStatusIn",
    "UserOut",
    "UserDeletedOut",
    "RouteCreate",
    "RouteCreatedOut",
    "RouteOut",
    "RouteRecountOut",
]
