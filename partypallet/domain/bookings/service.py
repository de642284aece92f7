"""Booking service - Business logic for booking creation and lifecycle"""

import logging
from math import ceil
from typing import Optional

from sqlalchemy.orm import Session

from ...auth import Actor
from ...database import run_in_transaction
from ...models import Booking
from ...services.notification_service import NotificationQueue
from ...shared.errors import NotFoundError, SlotConflictError, ValidationError
from ..scheduling.reservation import ReservationEngine, window_for
from ..scheduling.time_calculator import (
    MIN_EVENT_DURATION_MINUTES,
    TimeWindow,
    derive_overnight_pricing,
    duration_minutes,
    utcnow,
)
from .lifecycle import (
    OVERRIDE_NOTE_PREFIX,
    BookingStatus,
    is_terminal,
    record_status_change,
    validate_transition,
)
from .repository import BookingRepository
from .schemas import BookingCreate, BookingUpdate

logger = logging.getLogger(__name__)


def recompute_derived_fields(booking: Booking, overnight_surcharge: Optional[float] = None) -> None:
    """Refresh is_overnight and overnight_surcharge from the event window and estimate"""
    booking.is_overnight, booking.overnight_surcharge = derive_overnight_pricing(
        booking.event_start_time,
        booking.event_end_time,
        booking.estimate,
        overnight_surcharge,
    )


def booking_email_data(booking: Booking) -> dict:
    """Template data shared by every booking email"""
    return {
        "bookingId": booking.id,
        "clientName": booking.client_full_name,
        "clientEmail": booking.client_email,
        "clientPhone": booking.client_phone,
        "eventType": booking.event_type,
        "eventDate": booking.event_date.strftime("%B %d, %Y"),
        "startTime": booking.event_start_time,
        "endTime": booking.event_end_time,
        "location": booking.event_location,
        "consultationMode": booking.consultation_mode,
        "estimate": booking.estimate,
        "overnightSurcharge": booking.overnight_surcharge,
        "isOvernight": booking.is_overnight,
        "depositRequired": booking.deposit_required,
        "currency": booking.currency,
        "status": booking.status,
        "notes": booking.notes,
    }


def _with_override_prefix(note: Optional[str], override: bool) -> Optional[str]:
    if not override:
        return note
    return f"{OVERRIDE_NOTE_PREFIX} {note}" if note else OVERRIDE_NOTE_PREFIX


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session, notifier: Optional[NotificationQueue] = None):
        self.db = db
        self.repo = BookingRepository()
        self.reservations = ReservationEngine(db)
        self.notifier = notifier or NotificationQueue()

    def get_booking(self, booking_id: str) -> Booking:
        booking = self.repo.get_by_id(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def _lock_booking(self, booking_id: str) -> Booking:
        booking = self.repo.get_for_update(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def _reload(self, booking_id: str) -> Booking:
        self.db.expire_all()
        return self.get_booking(booking_id)

    def create_booking(self, data: BookingCreate) -> Booking:
        """
        Reserve the requested window and create a pending booking in one transaction.

        Raises:
            PastDateError, DayUnavailableError, SlotConflictError, ValidationError
        """
        window = TimeWindow.parse(data.event.startTime, data.event.endTime)
        event_date = data.event.date
        logger.info(
            f"📥 Creating booking for {data.client.email} on {event_date} {window.start}-{window.end}"
        )

        def work() -> str:
            self.reservations.reserve(event_date, window)
            booking = self.repo.create(
                self.db,
                client_full_name=data.client.fullName,
                client_email=data.client.email,
                client_phone=data.client.phone,
                event_type=data.event.type,
                event_title=data.event.title,
                event_location=data.event.location,
                event_date=event_date,
                event_start_time=window.start,
                event_end_time=window.end,
                consultation_mode=data.event.consultationMode,
                event_notes=data.event.notes,
                estimate=data.pricing.estimate,
                deposit_required=data.pricing.depositRequired,
                currency=data.pricing.currency,
                final_agreed=data.pricing.finalAgreed,
                notes=data.notes,
                status=BookingStatus.PENDING.value,
            )
            recompute_derived_fields(booking, data.pricing.overnightSurcharge)
            record_status_change(booking, BookingStatus.PENDING.value, note="Booking created")
            return booking.id

        booking_id = run_in_transaction(self.db, work, on_exhausted=SlotConflictError)
        booking = self._reload(booking_id)
        logger.info(f"✅ Booking {booking.id} created ({booking.status})")

        email_data = booking_email_data(booking)
        self.notifier.send("client_confirmation", booking.client_email, email_data)
        self.notifier.send_admin("admin_new_booking", email_data)
        return booking

    def list_bookings(self, page: int = 1, limit: int = 10, status: Optional[str] = None) -> dict:
        """Paginated bookings for the admin dashboard"""
        page = max(page, 1)
        limit = min(max(limit, 1), 100)
        items, total = self.repo.list_bookings(self.db, page=page, limit=limit, status=status)
        return {
            "items": items,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": ceil(total / limit) if total else 0,
            },
        }

    def get_payment_details(self, booking_id: str) -> dict:
        """Totals, amount paid through successful payments, and what is left to pay"""
        booking = self.get_booking(booking_id)
        payments = self.repo.successful_payments(self.db, booking_id)
        total_paid = sum(p.amount for p in payments) / 100

        return {
            "bookingId": booking.id,
            "currency": booking.currency,
            "totalAmount": booking.total_amount,
            "depositRequired": booking.deposit_required,
            "totalPaid": total_paid,
            "remainingBalance": booking.total_amount - total_paid,
            "payments": payments,
        }

    def update_status(
        self,
        booking_id: str,
        status: str,
        actor: Optional[Actor] = None,
        note: Optional[str] = None,
        override: bool = False,
    ) -> Booking:
        """
        Move a booking to ``status`` along the lifecycle.

        Cancelling goes through cancel_booking with ``note`` as the reason. With
        ``override`` any status is accepted; leaving cancelled re-reserves the slot.
        """
        if status == BookingStatus.CANCELLED.value:
            if not note or len(note.strip()) < 5:
                raise ValidationError("A cancellation reason of at least 5 characters is required")
            return self.cancel_booking(booking_id, note.strip(), actor=actor, override=override)

        actor_id = actor.id if actor else None

        def work() -> str:
            booking = self._lock_booking(booking_id)
            current = booking.status
            validate_transition(current, status, override=override)

            if current == BookingStatus.CANCELLED.value:
                self.reservations.reserve(
                    booking.event_date,
                    window_for(booking.event_start_time, booking.event_end_time),
                    exclude_booking_id=booking.id,
                    check_past=False,
                )
                booking.cancellation_reason = None
                booking.cancellation_date = None

            record_status_change(booking, status, actor_id, _with_override_prefix(note, override))
            return booking.id

        run_in_transaction(self.db, work, on_exhausted=SlotConflictError)
        booking = self._reload(booking_id)

        email_data = booking_email_data(booking)
        email_data["note"] = note
        template = "event_completion" if status == BookingStatus.COMPLETED.value else "status_update"
        self.notifier.send(template, booking.client_email, email_data)
        return booking

    def cancel_booking(
        self,
        booking_id: str,
        reason: str,
        actor: Optional[Actor] = None,
        override: bool = False,
    ) -> Booking:
        """Cancel a booking, release its slot and stamp the reason"""
        actor_id = actor.id if actor else None

        def work() -> str:
            booking = self._lock_booking(booking_id)
            validate_transition(booking.status, BookingStatus.CANCELLED.value, override=override)

            self.reservations.release(
                booking.event_date, window_for(booking.event_start_time, booking.event_end_time)
            )
            booking.cancellation_reason = reason
            booking.cancellation_date = utcnow()
            record_status_change(
                booking,
                BookingStatus.CANCELLED.value,
                actor_id,
                _with_override_prefix(reason, override),
            )
            return booking.id

        run_in_transaction(self.db, work)
        booking = self._reload(booking_id)
        logger.info(f"🚫 Booking {booking.id} cancelled by {actor_id}: {reason}")

        email_data = booking_email_data(booking)
        email_data["reason"] = reason
        self.notifier.send("cancellation", booking.client_email, email_data)
        return booking

    def update_booking(self, booking_id: str, data: BookingUpdate, actor: Optional[Actor] = None) -> Booking:
        """
        Edit client, event, pricing and notes.

        A new date or time releases the old slot and reserves the new one in the
        same transaction; a conflict leaves the booking unchanged.
        """

        def work() -> str:
            booking = self._lock_booking(booking_id)
            old_date = booking.event_date
            old_window = window_for(booking.event_start_time, booking.event_end_time)

            if data.client:
                if data.client.fullName is not None:
                    booking.client_full_name = data.client.fullName
                if data.client.email is not None:
                    booking.client_email = data.client.email
                if data.client.phone is not None:
                    booking.client_phone = data.client.phone

            new_date = old_date
            new_start, new_end = old_window.start, old_window.end
            if data.event:
                updates = {
                    "event_type": data.event.type,
                    "event_title": data.event.title,
                    "event_location": data.event.location,
                    "consultation_mode": data.event.consultationMode,
                    "event_notes": data.event.notes,
                }
                for key, value in updates.items():
                    if value is not None:
                        setattr(booking, key, value)
                new_date = data.event.date or old_date
                new_start = data.event.startTime or new_start
                new_end = data.event.endTime or new_end

            new_window = TimeWindow.parse(new_start, new_end)
            rescheduled = new_date != old_date or new_window != old_window
            if rescheduled:
                if is_terminal(booking.status):
                    raise ValidationError(
                        f"Cannot change the date or time of a {booking.status} booking"
                    )
                if duration_minutes(new_window.start, new_window.end) < MIN_EVENT_DURATION_MINUTES:
                    raise ValidationError(
                        f"Event duration must be at least {MIN_EVENT_DURATION_MINUTES} minutes"
                    )
                self.reservations.reschedule(booking.id, old_date, old_window, new_date, new_window)
                booking.event_date = new_date
                booking.event_start_time = new_window.start
                booking.event_end_time = new_window.end
                logger.info(
                    f"📅 Booking {booking.id} moved to {new_date} {new_window.start}-{new_window.end}"
                )

            # A non-zero stored surcharge is kept while the window stays overnight
            surcharge = booking.overnight_surcharge
            if data.pricing:
                if data.pricing.estimate is not None:
                    booking.estimate = data.pricing.estimate
                if data.pricing.depositRequired is not None:
                    booking.deposit_required = data.pricing.depositRequired
                if data.pricing.currency is not None:
                    booking.currency = data.pricing.currency
                if data.pricing.finalAgreed is not None:
                    booking.final_agreed = data.pricing.finalAgreed
                if data.pricing.overnightSurcharge is not None:
                    surcharge = data.pricing.overnightSurcharge

            if booking.deposit_required > booking.estimate:
                raise ValidationError("Deposit cannot exceed the estimated amount")

            recompute_derived_fields(booking, surcharge)

            if data.notes is not None:
                booking.notes = data.notes
            return booking.id

        run_in_transaction(self.db, work, on_exhausted=SlotConflictError)
        logger.info(f"✅ Booking {booking_id} updated by {actor.id if actor else None}")
        return self._reload(booking_id)
