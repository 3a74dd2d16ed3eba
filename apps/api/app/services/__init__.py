from app.services.events_service import create_event, delete_event, get_event, update_event
from app.services.registration_service import RegistrationState, join_event, leave_event

__all__ = [
    "create_event",
    "update_event",
    "delete_event",
    "get_event",
    "join_event",
    "leave_event",
    "RegistrationState",
]
