"""
Domain exceptions.

Services raise these instead of HTTP exceptions so that the business rules
stay usable outside of a request. Each carries the HTTP status the server
maps it to, and an optional machine-readable code.
"""

from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base class for business-rule violations."""

    status_code: int = 400
    code: Optional[str] = None

    def __init__(self, message: str, *, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_detail(self) -> str | dict:
        if self.code:
            return {"code": self.code, "message": self.message}
        return self.message


class ValidationFailed(DomainError):
    status_code = 400


class PermissionDenied(DomainError):
    status_code = 403


class NotFound(DomainError):
    status_code = 404


class Conflict(DomainError):
    status_code = 409


class WorkflowError(Conflict):
    """An action is not allowed from the requisition's current status."""


class PlanLimitExceeded(PermissionDenied):
    code = "PLAN_LIMIT_REACHED"


class EmailDeliveryError(Exception):
    """The email provider rejected a message or could not be reached."""


class EmailNotConfigured(EmailDeliveryError):
    """No email provider API key is configured."""
