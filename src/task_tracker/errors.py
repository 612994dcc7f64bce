"""
Typed failures raised by the service layer.

Each error carries a stable ``code`` and the HTTP ``status_code`` the API maps
it to, so the boundary can translate outcomes without inspecting messages.
"""
from __future__ import annotations


class TaskTrackerError(Exception):
    """Base class for expected, caller-visible failures."""

    code = "Error"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(TaskTrackerError):
    """A task or user does not exist."""

    code = "NotFound"
    status_code = 404


class NotAuthorized(TaskTrackerError):
    """The acting user may not perform the operation on the task."""

    code = "NotAuthorized"
    status_code = 403


class InvalidQuery(TaskTrackerError):
    """A list filter names an unknown status or priority."""

    code = "InvalidQuery"
    status_code = 400


class ValidationFailed(TaskTrackerError):
    code = "ValidationFailed"
    status_code = 422


class Conflict(TaskTrackerError):
    code = "Conflict"
    status_code = 409


class AuthenticationFailed(TaskTrackerError):
    """Missing, invalid or expired credentials."""

    code = "AuthenticationFailed"
    status_code = 401
