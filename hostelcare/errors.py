"""Error taxonomy shared by the service layer.

Routes translate these into HTTP responses; services raise them before any
write so a failed request never leaves partial state behind.
"""

from __future__ import annotations


class MaintenanceError(RuntimeError):
    """Base error for maintenance service issues."""


class UnauthorizedError(MaintenanceError):
    """Raised when the acting user's role does not permit the action."""


class NotFoundError(MaintenanceError):
    """Raised when a referenced record does not exist."""


class TicketNotFoundError(NotFoundError):
    """Raised when an operation targets a non-existent ticket."""


class VendorNotFoundError(NotFoundError):
    """Raised when an operation targets a non-existent vendor."""


class UserNotFoundError(NotFoundError):
    """Raised when a referenced user does not exist."""


class ValidationError(MaintenanceError):
    """Raised for malformed input: missing fields, wrong enum values or types."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class TransitionError(MaintenanceError):
    """Base error for rejected ticket status transitions."""


class InvalidTransitionError(TransitionError):
    """Raised when the requested status is not reachable for the acting role."""


class MissingVendorError(TransitionError):
    """Raised when a vendor transition is requested without a vendor."""


class MissingAssigneeError(TransitionError):
    """Raised when an assignment transition is requested without a warden."""


class TransitionConflictError(TransitionError):
    """Raised when the ticket changed status while a transition was in flight."""


class UploadError(MaintenanceError):
    """Raised when uploaded files could not be persisted."""
