from fastapi import HTTPException

from app.services.exceptions import (
    BadRequestError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
)


def http_error_from_service(err: ServiceError) -> HTTPException:
    if isinstance(err, NotFoundError):
        status = 404
    elif isinstance(err, PermissionDeniedError):
        status = 403
    elif isinstance(err, BadRequestError):
        status = 400
    else:
        status = 500

    return HTTPException(
        status_code=status,
        detail={"code": err.code, "message": err.message},
    )
