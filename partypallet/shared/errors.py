"""Booking engine error taxonomy, rendered by the handlers in main.py"""

from typing import Optional


class BookingEngineError(Exception):
    """Base class for every error the booking engine reports to callers"""

    kind = "internal_error"
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(BookingEngineError):
    kind = "validation_error"
    status_code = 400
    default_message = "Invalid request"


class InvalidStatusTransitionError(ValidationError):
    kind = "invalid_status_transition"

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change booking status from '{current}' to '{requested}'")


class PastDateError(BookingEngineError):
    kind = "past_date"
    status_code = 400
    default_message = "Date cannot be in the past"


class DayUnavailableError(BookingEngineError):
    kind = "day_unavailable"
    status_code = 409
    default_message = "Selected date is not available for bookings"


class SlotConflictError(BookingEngineError):
    kind = "slot_conflict"
    status_code = 409
    default_message = "Time slot conflicts with existing booking"


class SlotBookedError(BookingEngineError):
    kind = "slot_booked"
    status_code = 400
    default_message = "Cannot block a slot that is already booked"


class AuthenticationError(BookingEngineError):
    kind = "authentication_error"
    status_code = 401
    default_message = "Invalid credentials"


class NotFoundError(BookingEngineError):
    kind = "not_found"
    status_code = 404
    default_message = "Resource not found"


class PaymentProviderError(BookingEngineError):
    kind = "payment_provider_error"
    status_code = 502
    default_message = "Payment provider request failed"
