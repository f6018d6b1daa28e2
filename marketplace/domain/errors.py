"""
Error taxonomy shared by every transition.

Each error carries the HTTP status it maps to; the API layer renders it as
``{"detail": <message>, "error": <kind>}``.
"""

from __future__ import annotations


class DomainError(Exception):
    status_code = 400
    kind = "error"

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class Unauthenticated(DomainError):
    status_code = 401
    kind = "unauthenticated"


class Forbidden(DomainError):
    status_code = 403
    kind = "forbidden"


class NotAssigned(Forbidden):
    """The acting garage does not own or match the booking."""

    kind = "not_assigned"


class NotApproved(Forbidden):
    """The acting garage's own account is not approved."""

    kind = "not_approved"


class NotFound(DomainError):
    status_code = 404
    kind = "not_found"


class InvalidTransition(DomainError):
    """The current state does not permit the requested action."""

    status_code = 400
    kind = "invalid_transition"


class AlreadyCompleted(InvalidTransition):
    kind = "already_completed"


class PreconditionFailed(DomainError):
    """An auxiliary fact is false even though the state would allow it."""

    status_code = 400
    kind = "precondition_failed"


class ValidationError(DomainError):
    status_code = 400
    kind = "validation_error"
