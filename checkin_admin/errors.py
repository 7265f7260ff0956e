from __future__ import annotations

"""Domain errors raised by the schedule, check-in and promotion code.

Each error carries the HTTP status and the short message shown to staff;
observability.add_exception_handlers turns them into the standard error payload.
"""

from typing import Optional


class CheckInAdminError(Exception):
    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ScheduleValidationError(CheckInAdminError):
    status_code = 422
    message = "pre-registration date must be before event date"


class ScheduleNotConfigured(CheckInAdminError):
    status_code = 404
    message = "event configuration not found"


class OutOfWindow(CheckInAdminError):
    """A scan arrived before the pre-registration window opened. No record is written."""

    status_code = 409
    message = "check-in not open at this time"
    reason = "OUTSIDE_WINDOW"


class StorageFailure(CheckInAdminError):
    """The backing store refused a read or write. Safe to retry."""

    status_code = 503
    message = "storage unavailable, please retry"


class PromotionNotEligible(CheckInAdminError):
    status_code = 400
    message = "first-timer is not yet eligible for promotion"


class AlreadyPromoted(CheckInAdminError):
    """Another request promoted the same first-timer first."""

    status_code = 409
    message = "first-timer already promoted"
