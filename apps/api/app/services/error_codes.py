from enum import Enum


class ErrorCode(str, Enum):
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    ROUTE_NOT_FOUND = "ROUTE_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    MEMBER_NOT_FOUND = "MEMBER_NOT_FOUND"

    NOT_EVENT_MANAGER = "NOT_EVENT_MANAGER"
    NOT_MEMBER_OWNER = "NOT_MEMBER_OWNER"

    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    NOT_REGISTERED = "NOT_REGISTERED"
    MEMBER_ALREADY_EXISTS = "MEMBER_ALREADY_EXISTS"
    USER_ALREADY_APPROVED = "USER_ALREADY_APPROVED"
    CANNOT_DELETE_SELF = "CANNOT_DELETE_SELF"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"
