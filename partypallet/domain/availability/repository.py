"""Availability repository - Database operations for day records and slots"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import Availability, AvailabilitySlot


class AvailabilityRepository:
    """Repository for availability database operations"""

    @staticmethod
    def get_by_date(db: Session, day: date) -> Optional[Availability]:
        return (
            db.query(Availability)
            .options(selectinload(Availability.slots))
            .filter(Availability.date == day)
            .first()
        )

    @staticmethod
    def get_for_update(db: Session, day: date) -> Optional[Availability]:
        """Load a day record and hold its row lock until the transaction ends"""
        return (
            db.query(Availability)
            .filter(Availability.date == day)
            .with_for_update()
            .populate_existing()
            .first()
        )

    @staticmethod
    def create(db: Session, day: date, is_available: bool = True) -> Availability:
        """
        Insert a day record and flush it.

        A concurrent insert of the same date fails here on the unique index,
        so the caller's transaction retries and finds the other writer's row.
        """
        availability = Availability(date=day, is_available=is_available)
        db.add(availability)
        db.flush()
        return availability

    @staticmethod
    def list_range(
        db: Session, start: Optional[date] = None, end: Optional[date] = None
    ) -> list[Availability]:
        query = db.query(Availability).options(selectinload(Availability.slots))
        if start is not None:
            query = query.filter(Availability.date >= start)
        if end is not None:
            query = query.filter(Availability.date <= end)
        return query.order_by(Availability.date.asc()).all()

    @staticmethod
    def sync_slots(db: Session, availability: Availability, planned: list) -> None:
        """
        Make the day's slot rows match a planned slot list.

        Rows whose bounds appear in the plan are updated in place, the rest are
        removed, and planned slots without a row are added.
        """
        existing = {(slot.start, slot.end): slot for slot in availability.slots}
        wanted = {(spec.start, spec.end) for spec in planned}

        for key, slot in existing.items():
            if key not in wanted:
                availability.slots.remove(slot)

        for spec in planned:
            slot = existing.get((spec.start, spec.end))
            if slot is None:
                availability.slots.append(
                    AvailabilitySlot(start=spec.start, end=spec.end, status=spec.status, note=spec.note)
                )
            else:
                slot.status = spec.status
                slot.note = spec.note

        db.flush()
        availability.slots.sort(key=lambda s: s.start)

    @staticmethod
    def delete(db: Session, availability: Availability) -> None:
        db.delete(availability)
        db.flush()
