"""Availability service - Business logic for day records and slots"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...database import run_in_transaction
from ...models import Availability
from ...shared.errors import NotFoundError, PastDateError, ValidationError
from ..scheduling.reservation import ReservationEngine, SlotSpec, plan_block, plan_set_slots
from ..scheduling.time_calculator import TimeWindow, format_date, is_past, parse_date
from .repository import AvailabilityRepository
from .schemas import BlockSlotRequest, SetAvailabilityRequest

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Service layer for availability business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AvailabilityRepository()
        self.reservations = ReservationEngine(db)

    def get_availability(
        self,
        day: Optional[str] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> list[Availability]:
        """
        Day records for one date, a date range, or everything.

        A single ``day`` wins over a range. Either end of the range may be open.
        """
        if day:
            target = parse_date(day)
            return self.repo.list_range(self.db, target, target)

        range_start = parse_date(start) if start else None
        range_end = parse_date(end) if end else None
        if range_start and range_end and range_end < range_start:
            raise ValidationError("End date must not be before start date")
        return self.repo.list_range(self.db, range_start, range_end)

    def set_availability(self, data: SetAvailabilityRequest) -> Availability:
        """
        Create or update a day. Supplied slots replace the existing non-booked
        slots; booked slots always survive.
        """
        day = data.date
        if is_past(day):
            raise PastDateError("Cannot set availability for past dates")

        def work() -> int:
            availability = self.reservations.lock_day(day)
            if data.isAvailable is not None:
                availability.is_available = data.isAvailable

            if data.slots is not None:
                supplied = [SlotSpec(s.start, s.end, s.status, s.note) for s in data.slots]
                planned = plan_set_slots(self.reservations.current_slots(availability), supplied)
                self.repo.sync_slots(self.db, availability, planned)
            return availability.id

        run_in_transaction(self.db, work)
        logger.info(f"📅 Availability set for {format_date(day)}")
        return self._reload(day)

    def block_slot(self, data: BlockSlotRequest) -> Availability:
        """Block a time range, trimming available slots around it"""
        day = data.date
        if is_past(day):
            raise PastDateError("Cannot block slots on past dates")
        window = TimeWindow.parse(data.start, data.end)

        def work() -> int:
            availability = self.reservations.lock_day(day)
            planned = plan_block(self.reservations.current_slots(availability), window, data.note)
            self.repo.sync_slots(self.db, availability, planned)
            return availability.id

        run_in_transaction(self.db, work)
        logger.info(f"⛔ Blocked {format_date(day)} {window.start}-{window.end}")
        return self._reload(day)

    def delete_availability(self, day_value: str) -> None:
        """Remove a day record and all of its slots"""
        day = parse_date(day_value)
        if is_past(day):
            raise PastDateError("Cannot delete availability for past dates")

        def work() -> None:
            availability = self.reservations.lock_day(day, create=False)
            if availability is None:
                raise NotFoundError("Availability not found for this date")
            booked = sum(1 for slot in availability.slots if slot.status == "booked")
            if booked:
                logger.warning(
                    f"⚠️ Deleting availability for {format_date(day)} with {booked} booked slot(s)"
                )
            self.repo.delete(self.db, availability)

        run_in_transaction(self.db, work)
        logger.info(f"🗑️ Availability deleted for {format_date(day)}")

    def _reload(self, day: date) -> Availability:
        self.db.expire_all()
        availability = self.repo.get_by_date(self.db, day)
        if availability is None:
            raise NotFoundError("Availability not found for this date")
        return availability
