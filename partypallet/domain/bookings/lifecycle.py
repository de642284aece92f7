"""
Booking lifecycle: pending → deposit-paid → confirmed → completed.

Any non-terminal status may move to cancelled. completed and cancelled are
terminal. Every change appends one history entry.
"""

import logging
from enum import Enum
from typing import Optional

from ...models import Booking, BookingStatusHistory
from ...shared.errors import InvalidStatusTransitionError, ValidationError
from ..scheduling.time_calculator import utcnow

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    PENDING = "pending"
    DEPOSIT_PAID = "deposit-paid"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = {BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value}

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING.value: {BookingStatus.DEPOSIT_PAID.value, BookingStatus.CANCELLED.value},
    BookingStatus.DEPOSIT_PAID.value: {BookingStatus.CONFIRMED.value, BookingStatus.CANCELLED.value},
    BookingStatus.CONFIRMED.value: {BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value},
    BookingStatus.COMPLETED.value: set(),
    BookingStatus.CANCELLED.value: set(),
}

OVERRIDE_NOTE_PREFIX = "[override]"


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def validate_transition(current: str, requested: str, override: bool = False) -> None:
    """
    Check that a booking may move from ``current`` to ``requested``.

    With ``override`` any known status is accepted, including the current one.

    Raises:
        ValidationError: requested status is unknown
        InvalidStatusTransitionError: the lifecycle does not allow the move
    """
    if requested not in ALLOWED_TRANSITIONS:
        raise ValidationError(f"Invalid status '{requested}'")

    if override:
        return

    if requested not in ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidStatusTransitionError(current, requested)


def record_status_change(
    booking: Booking,
    status: str,
    changed_by: Optional[str] = None,
    note: Optional[str] = None,
) -> BookingStatusHistory:
    """Set the booking status and append the matching history entry"""
    previous = booking.status
    booking.status = status
    entry = BookingStatusHistory(status=status, changed_at=utcnow(), changed_by=changed_by, note=note)
    booking.status_history.append(entry)

    if previous and previous != status:
        logger.info(f"🔄 Booking {booking.id}: {previous} → {status}")
    return entry
