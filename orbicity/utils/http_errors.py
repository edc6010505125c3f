"""
Service error -> HTTP response mapping, shared by every router.
"""

from fastapi import HTTPException, status

from ..errors import (
    EngineError,
    ConflictError,
    NotFoundError,
    OwnershipError,
    DuplicateSeasonalRateError,
    InvalidRequestError,
    SyncInProgressError,
    FetchError,
    ParseError,
)

STATUS_BY_ERROR = (
    (ConflictError, status.HTTP_409_CONFLICT),
    (DuplicateSeasonalRateError, status.HTTP_409_CONFLICT),
    (SyncInProgressError, status.HTTP_409_CONFLICT),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (OwnershipError, status.HTTP_403_FORBIDDEN),
    (InvalidRequestError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (FetchError, status.HTTP_502_BAD_GATEWAY),
    (ParseError, status.HTTP_422_UNPROCESSABLE_ENTITY),
)


def to_http_exception(error: EngineError) -> HTTPException:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            break
    else:
        status_code = status.HTTP_400_BAD_REQUEST

    detail = {"error": type(error).__name__, "message": error.message}
    if isinstance(error, ConflictError):
        detail["booking_ids"] = error.booking_ids
        detail["blocked_range_ids"] = error.blocked_range_ids

    return HTTPException(status_code=status_code, detail=detail)
