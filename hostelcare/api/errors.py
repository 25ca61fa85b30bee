"""Translate service errors into HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException, status

from hostelcare.errors import (
    InvalidTransitionError,
    MaintenanceError,
    MissingAssigneeError,
    MissingVendorError,
    NotFoundError,
    TransitionConflictError,
    UnauthorizedError,
    UploadError,
    ValidationError,
)

_STATUS_CODES: tuple[tuple[type[MaintenanceError], int], ...] = (
    (UnauthorizedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, 422),
    (MissingVendorError, 422),
    (MissingAssigneeError, 422),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (TransitionConflictError, status.HTTP_409_CONFLICT),
    (UploadError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def http_error(exc: MaintenanceError) -> HTTPException:
    """Build the HTTPException a route should raise for ``exc``.

    The detail carries the error kind and message, plus the offending field
    for validation failures so clients can show it inline.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, code in _STATUS_CODES:
        if isinstance(exc, error_type):
            status_code = code
            break

    detail: dict[str, str] = {"error": type(exc).__name__.removesuffix("Error"), "message": str(exc)}
    field = getattr(exc, "field", None)
    if field:
        detail["field"] = field
    return HTTPException(status_code=status_code, detail=detail)
