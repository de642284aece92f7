import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .domain.scheduling.time_calculator import duration_hours, utcnow


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


CURRENCY_SYMBOLS = {"NGN": "₦", "USD": "$", "GBP": "£", "EUR": "€"}


# Payments applied to a booking (successful charges linked during reconciliation)
booking_payments = Table(
    "booking_payments",
    Base.metadata,
    Column("booking_id", String(36), ForeignKey("bookings.id"), primary_key=True),
    Column("payment_id", String(36), ForeignKey("payments.id"), primary_key=True),
)


class Availability(Base):
    """One calendar day and its time slots"""

    __tablename__ = "availability"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, unique=True, nullable=False, index=True)
    is_available = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    slots = relationship(
        "AvailabilitySlot",
        back_populates="availability",
        cascade="all, delete-orphan",
        order_by="AvailabilitySlot.start",
    )


class AvailabilitySlot(Base):
    __tablename__ = "availability_slots"

    id = Column(Integer, primary_key=True, index=True)
    availability_id = Column(
        Integer, ForeignKey("availability.id", ondelete="CASCADE"), nullable=False, index=True
    )
    start = Column("start_time", String(5), nullable=False)  # HH:MM
    end = Column("end_time", String(5), nullable=False)  # HH:MM
    status = Column(String(20), default="available", nullable=False)  # available, blocked, booked
    note = Column(String(500), nullable=True)

    availability = relationship("Availability", back_populates="slots")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_event_window", "event_date", "event_start_time", "event_end_time"),
    )

    id = Column(String(36), primary_key=True, default=generate_public_id)

    # Client
    client_full_name = Column(String(50), nullable=False)
    client_email = Column(String(255), nullable=False, index=True)
    client_phone = Column(String(20), nullable=False)

    # Event
    event_type = Column(String(50), nullable=False)  # Birthday, Bridal Shower, Baby Shower, House, Hall, Other
    event_title = Column(String(255), nullable=True)
    event_location = Column(String(100), nullable=False)
    event_date = Column(Date, nullable=False)
    event_start_time = Column(String(5), nullable=False)  # HH:MM
    event_end_time = Column(String(5), nullable=False)  # HH:MM
    consultation_mode = Column(String(20), default="whatsapp", nullable=False)
    event_notes = Column(Text, nullable=True)

    # Pricing (major units)
    estimate = Column(Float, nullable=False)
    overnight_surcharge = Column(Float, default=0, nullable=False)
    deposit_required = Column(Float, nullable=False)
    currency = Column(String(3), default="NGN", nullable=False)
    final_agreed = Column(Float, nullable=True)

    notes = Column(Text, nullable=True)
    is_overnight = Column(Boolean, default=False, nullable=False)
    status = Column(String(20), default="pending", nullable=False, index=True)
    cancellation_reason = Column(String(200), nullable=True)
    cancellation_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    status_history = relationship(
        "BookingStatusHistory",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingStatusHistory.id",
    )
    payments = relationship("Payment", secondary=booking_payments, order_by="Payment.created_at")

    @property
    def total_amount(self) -> float:
        return (self.estimate or 0) + (self.overnight_surcharge or 0)

    @property
    def remaining_balance(self) -> float:
        return self.total_amount - (self.deposit_required or 0)

    @property
    def duration_hours(self) -> float:
        return duration_hours(self.event_start_time, self.event_end_time)


class BookingStatusHistory(Base):
    """Append-only audit trail of booking status changes"""

    __tablename__ = "booking_status_history"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False)
    changed_at = Column(DateTime, nullable=False)
    changed_by = Column(String(255), nullable=True)  # Admin actor id, null for system changes
    note = Column(String(500), nullable=True)

    booking = relationship("Booking", back_populates="status_history")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    provider = Column(String(20), nullable=False)  # paystack, flutterwave
    reference = Column(String(100), unique=True, nullable=False, index=True)
    amount = Column(Integer, nullable=False)  # Minor units (kobo)
    currency = Column(String(3), default="NGN", nullable=False)
    status = Column(String(20), default="initialized", nullable=False, index=True)
    payment_date = Column(DateTime, nullable=True)
    channel = Column(String(20), nullable=True)  # card, bank_transfer, ussd, qr_code, mobile_money, bank
    failure_reason = Column(String(500), nullable=True)
    raw = Column(JSON, nullable=True)  # Provider payload, never returned to clients
    client_ip = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    booking = relationship("Booking", foreign_keys=[booking_id])

    @property
    def amount_major(self) -> float:
        return self.amount / 100

    @property
    def formatted_amount(self) -> str:
        symbol = CURRENCY_SYMBOLS.get(self.currency, f"{self.currency} ")
        return f"{symbol}{self.amount_major:,.2f}"
