"""
Slot reservation - deciding and applying changes to a day's slots.

The planning functions are pure: they take the current slots of a day as
SlotSpec values and return the new list, raising when the change is not
allowed. ReservationEngine runs them against locked rows inside the caller's
transaction.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ...models import Availability
from ...shared.errors import (
    DayUnavailableError,
    PastDateError,
    SlotBookedError,
    SlotConflictError,
    ValidationError,
)
from ..availability.repository import AvailabilityRepository
from ..bookings.repository import BookingRepository
from .time_calculator import TimeWindow, format_date, is_past, normalize_time, to_minutes

logger = logging.getLogger(__name__)

SLOT_AVAILABLE = "available"
SLOT_BLOCKED = "blocked"
SLOT_BOOKED = "booked"
SLOT_STATUSES = (SLOT_AVAILABLE, SLOT_BLOCKED, SLOT_BOOKED)


@dataclass(frozen=True)
class SlotSpec:
    start: str
    end: str
    status: str = SLOT_AVAILABLE
    note: Optional[str] = None

    @classmethod
    def from_row(cls, slot) -> "SlotSpec":
        return cls(slot.start, slot.end, slot.status, slot.note)


def sort_slots(slots: Iterable[SlotSpec]) -> list[SlotSpec]:
    return sorted(slots, key=lambda s: to_minutes(s.start))


def validate_disjoint(slots: Iterable[SlotSpec]) -> list[SlotSpec]:
    """Sort slots and require next.start >= current.end for every adjacent pair"""
    ordered = sort_slots(slots)
    for current, following in zip(ordered, ordered[1:]):
        if to_minutes(following.start) < to_minutes(current.end):
            raise ValidationError(
                f"Time slots must not overlap ({current.start}-{current.end} and "
                f"{following.start}-{following.end})"
            )
    return ordered


def subtract(slot: SlotSpec, window: TimeWindow) -> list[SlotSpec]:
    """Parts of ``slot`` lying outside ``window``, keeping status and note"""
    pieces = []
    if to_minutes(slot.start) < window.start_minutes:
        pieces.append(replace(slot, end=window.start))
    if window.end_minutes < to_minutes(slot.end):
        pieces.append(replace(slot, start=window.end))
    return pieces


def plan_reservation(slots: Iterable[SlotSpec], window: TimeWindow) -> list[SlotSpec]:
    """
    Mark ``window`` booked.

    Blocked or booked slots intersecting the window are a conflict. Available
    slots intersecting it are trimmed to the parts outside it; an available slot
    with identical bounds becomes the booked slot.
    """
    planned = []
    for slot in slots:
        if not window.overlaps(slot.start, slot.end):
            planned.append(slot)
            continue
        if slot.status == SLOT_BLOCKED:
            raise SlotConflictError(f"Time slot is blocked ({slot.start}-{slot.end})")
        if slot.status != SLOT_AVAILABLE:
            raise SlotConflictError()
        planned.extend(subtract(slot, window))

    planned.append(SlotSpec(window.start, window.end, SLOT_BOOKED))
    return validate_disjoint(planned)


def plan_release(slots: Iterable[SlotSpec], window: TimeWindow) -> list[SlotSpec]:
    """Flip the booked slot with the window's exact bounds back to available"""
    planned = []
    for slot in slots:
        if slot.status == SLOT_BOOKED and window.same_bounds(slot.start, slot.end):
            planned.append(replace(slot, status=SLOT_AVAILABLE))
        else:
            planned.append(slot)
    return sort_slots(planned)


def plan_block(slots: Iterable[SlotSpec], window: TimeWindow, note: Optional[str] = None) -> list[SlotSpec]:
    """
    Mark ``window`` blocked.

    Any overlap with a booked slot fails with SlotBookedError. Re-blocking the
    same bounds updates the note; a partial overlap with another blocked slot is
    rejected. Available slots are trimmed around the window.
    """
    planned = []
    for slot in slots:
        if not window.overlaps(slot.start, slot.end):
            planned.append(slot)
            continue
        if slot.status == SLOT_BOOKED:
            raise SlotBookedError()
        if slot.status == SLOT_BLOCKED:
            if window.same_bounds(slot.start, slot.end):
                continue
            raise ValidationError(
                f"Slot overlaps the blocked slot {slot.start}-{slot.end}"
            )
        planned.extend(subtract(slot, window))

    planned.append(SlotSpec(window.start, window.end, SLOT_BLOCKED, note))
    return validate_disjoint(planned)


def plan_set_slots(current: Iterable[SlotSpec], supplied: Iterable[SlotSpec]) -> list[SlotSpec]:
    """
    Replace a day's slots with ``supplied`` while keeping every booked slot.

    Supplied entries may only be available or blocked. An entry with the same
    bounds as a booked slot is dropped in favour of the booking.
    """
    booked = [slot for slot in current if slot.status == SLOT_BOOKED]
    booked_bounds = {(slot.start, slot.end) for slot in booked}

    merged = list(booked)
    for slot in supplied:
        if slot.status not in (SLOT_AVAILABLE, SLOT_BLOCKED):
            raise ValidationError(f"Slot status must be 'available' or 'blocked', got '{slot.status}'")
        window = TimeWindow.parse(slot.start, slot.end)
        if (window.start, window.end) in booked_bounds:
            continue
        merged.append(SlotSpec(window.start, window.end, slot.status, slot.note))

    return validate_disjoint(merged)


class ReservationEngine:
    """
    Applies slot plans to locked day rows.

    Every method runs inside the caller's open transaction and never commits;
    wrap calls in database.run_in_transaction.
    """

    def __init__(self, db: Session):
        self.db = db
        self.availability_repo = AvailabilityRepository()
        self.booking_repo = BookingRepository()

    def lock_day(self, day: date, create: bool = True) -> Optional[Availability]:
        """Lock the day row, inserting it first when ``create`` is set"""
        availability = self.availability_repo.get_for_update(self.db, day)
        if availability is None and create:
            logger.info(f"📅 Creating availability record for {format_date(day)}")
            availability = self.availability_repo.create(self.db, day)
        return availability

    def current_slots(self, availability: Availability) -> list[SlotSpec]:
        return [SlotSpec.from_row(slot) for slot in availability.slots]

    def reserve(
        self,
        day: date,
        window: TimeWindow,
        exclude_booking_id: Optional[str] = None,
        check_past: bool = True,
    ) -> Availability:
        """
        Mark ``window`` on ``day`` booked after checking bookings and slots.

        Raises:
            PastDateError: day is before today
            DayUnavailableError: the day is closed for bookings
            SlotConflictError: another booking or a blocked/booked slot intersects
        """
        if check_past and is_past(day):
            raise PastDateError("Booking date cannot be in the past")

        availability = self.lock_day(day)
        if not availability.is_available:
            raise DayUnavailableError()

        clash = self.booking_repo.find_overlapping(
            self.db, day, window.start, window.end, exclude_id=exclude_booking_id
        )
        if clash is not None:
            logger.warning(
                f"⚠️ Slot {format_date(day)} {window.start}-{window.end} overlaps booking {clash.id}"
            )
            raise SlotConflictError()

        planned = plan_reservation(self.current_slots(availability), window)
        self.availability_repo.sync_slots(self.db, availability, planned)
        return availability

    def release(self, day: date, window: TimeWindow) -> None:
        """Return a booked window to available; nothing happens if it is not there"""
        availability = self.lock_day(day, create=False)
        if availability is None:
            return

        planned = plan_release(self.current_slots(availability), window)
        self.availability_repo.sync_slots(self.db, availability, planned)
        logger.info(f"🔓 Released slot {format_date(day)} {window.start}-{window.end}")

    def reschedule(
        self,
        booking_id: str,
        old_day: date,
        old_window: TimeWindow,
        new_day: date,
        new_window: TimeWindow,
    ) -> None:
        """Release the old window and reserve the new one, ignoring the booking itself"""
        # Lock both days in date order
        for day in sorted({old_day, new_day}):
            self.lock_day(day, create=day == new_day and not is_past(day))

        self.release(old_day, old_window)
        self.reserve(new_day, new_window, exclude_booking_id=booking_id)


def window_for(start: str, end: str) -> TimeWindow:
    """TimeWindow for stored booking times"""
    return TimeWindow(normalize_time(start), normalize_time(end))
