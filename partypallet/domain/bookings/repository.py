"""Booking repository - Database operations for bookings"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import Booking, Payment


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_by_id(db: Session, booking_id: str) -> Optional[Booking]:
        return (
            db.query(Booking)
            .options(selectinload(Booking.status_history), selectinload(Booking.payments))
            .filter(Booking.id == booking_id)
            .first()
        )

    @staticmethod
    def get_for_update(db: Session, booking_id: str) -> Optional[Booking]:
        return (
            db.query(Booking)
            .filter(Booking.id == booking_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    @staticmethod
    def find_overlapping(
        db: Session,
        event_date: date,
        start: str,
        end: str,
        exclude_id: Optional[str] = None,
    ) -> Optional[Booking]:
        """
        First non-cancelled booking on the date whose window intersects [start, end).

        Times are stored zero-padded, so string comparison orders them correctly.
        """
        query = db.query(Booking).filter(
            Booking.event_date == event_date,
            Booking.status != "cancelled",
            Booking.event_start_time < end,
            Booking.event_end_time > start,
        )
        if exclude_id:
            query = query.filter(Booking.id != exclude_id)
        return query.first()

    @staticmethod
    def list_bookings(
        db: Session, page: int = 1, limit: int = 10, status: Optional[str] = None
    ) -> tuple[list[Booking], int]:
        """Paginated bookings ordered by event date, returns (items, total)"""
        query = db.query(Booking)
        if status:
            query = query.filter(Booking.status == status)

        total = query.count()
        items = (
            query.order_by(Booking.event_date.asc(), Booking.event_start_time.asc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total

    @staticmethod
    def create(db: Session, **booking_data) -> Booking:
        booking = Booking(**booking_data)
        db.add(booking)
        db.flush()
        return booking

    @staticmethod
    def successful_payments(db: Session, booking_id: str) -> list[Payment]:
        return (
            db.query(Payment)
            .filter(Payment.booking_id == booking_id, Payment.status == "success")
            .order_by(Payment.created_at.asc())
            .all()
        )
