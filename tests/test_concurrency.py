"""Concurrent reservations and payment deliveries against one file-backed database."""

from concurrent.futures import ThreadPoolExecutor

from sqlalchemy import func, select

from partypallet.domain.availability.repository import AvailabilityRepository
from partypallet.domain.payments.reconciliation import PaymentEvent, PaymentReconciler
from partypallet.domain.payments.repository import PaymentRepository
from partypallet.models import Booking, BookingStatusHistory, booking_payments
from partypallet.shared.errors import SlotConflictError

from .conftest import future_date, make_booking

WORKERS = 8


def test_only_one_overlapping_reservation_wins(session_factory):
    day = future_date()

    def attempt(index):
        session = session_factory()
        try:
            make_booking(
                session,
                day=day,
                start=f"{14 + index % 2}:00",
                end="18:00",
                email=f"guest{index}@example.com",
            )
            return "booked"
        except SlotConflictError:
            return "conflict"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        outcomes = list(pool.map(attempt, range(WORKERS)))

    assert outcomes.count("booked") == 1
    assert outcomes.count("conflict") == WORKERS - 1

    with session_factory() as session:
        assert session.query(Booking).count() == 1
        availability = AvailabilityRepository.get_by_date(session, day)
        assert [s.status for s in availability.slots].count("booked") == 1


def test_disjoint_reservations_all_succeed(session_factory):
    day = future_date()
    windows = [("08:00", "10:00"), ("10:00", "12:00"), ("12:00", "14:00"), ("14:00", "16:00")]

    def attempt(window):
        session = session_factory()
        try:
            make_booking(session, day=day, start=window[0], end=window[1])
            return "booked"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=len(windows)) as pool:
        outcomes = list(pool.map(attempt, windows))

    assert outcomes == ["booked"] * len(windows)

    with session_factory() as session:
        availability = AvailabilityRepository.get_by_date(session, day)
        assert [(s.start, s.end) for s in availability.slots] == windows


def test_same_payment_event_applies_once_under_concurrency(session_factory):
    with session_factory() as session:
        booking = make_booking(session, estimate=150000, deposit=50000)
        PaymentRepository.create(
            session,
            booking_id=booking.id,
            provider="paystack",
            reference="party_pallet_1_concurrent",
            amount=5000000,
            status="pending",
        )
        session.commit()
        booking_id = booking.id

    event = PaymentEvent(
        event="success", reference="party_pallet_1_concurrent", amount=5000000, channel="card"
    )

    def deliver(_):
        session = session_factory()
        try:
            return PaymentReconciler(session).apply_event(event).outcome
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        outcomes = list(pool.map(deliver, range(WORKERS)))

    assert outcomes.count("applied") == 1
    assert outcomes.count("duplicate") == WORKERS - 1

    with session_factory() as session:
        statuses = [
            h.status
            for h in session.query(BookingStatusHistory).filter_by(booking_id=booking_id)
        ]
        assert statuses.count("deposit-paid") == 1
        assert session.get(Booking, booking_id).status == "deposit-paid"
        links = session.execute(
            select(func.count()).select_from(booking_payments).where(
                booking_payments.c.booking_id == booking_id
            )
        ).scalar()
        assert links == 1
