"""Domain errors surfaced to API callers.

Each error is a decision, not a transient fault: callers report it and never
retry it.
"""
from __future__ import annotations


class SalonBookError(Exception):
    error = "error"
    status_code = 400

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.error)
        self.message = message or self.error

    def to_dict(self) -> dict[str, str]:
        return {"error": self.error, "message": self.message}


class InvalidPayload(SalonBookError):
    error = "invalid_payload"
    status_code = 400


class Unauthorized(SalonBookError):
    error = "unauthorized"
    status_code = 401


class Forbidden(SalonBookError):
    error = "forbidden"
    status_code = 403


class NotFound(SalonBookError):
    error = "not_found"
    status_code = 404


class SalonNotBookable(SalonBookError):
    error = "salon_not_bookable"
    status_code = 403


class InvalidStateTransition(SalonBookError):
    error = "invalid_state_transition"
    status_code = 409


class CancellationWindowClosed(SalonBookError):
    error = "cancellation_window_closed"
    status_code = 403


class PhoneReserved(SalonBookError):
    error = "phone_reserved"
    status_code = 403
