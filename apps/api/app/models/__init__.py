from app.models.base import Base
from app.models.event import Event, EventParticipant, EventWaitlistEntry
from app.models.event_participation import EventParticipation
from app.models.member import Member
from app.models.route import Route
from app.models.user import User

__all__ = [
    "Base",
    "User",
    "Member",
    "Route",
    "Event",
    "EventParticipant",
    "EventWaitlistEntry",
    "EventParticipation",
]
