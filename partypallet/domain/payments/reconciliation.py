"""
Payment reconciliation - applying provider events to payments and bookings.

Events arrive from webhooks and from verification polls, possibly more than
once and out of order. The payment reference is the idempotency key: each
event is applied at most once, and a successful payment never goes back to
failed.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.orm import Session

from ...database import run_in_transaction
from ...models import Payment
from ...services.notification_service import NotificationQueue
from ...shared.errors import NotFoundError
from ..bookings.lifecycle import BookingStatus, record_status_change
from ..bookings.repository import BookingRepository
from ..bookings.service import booking_email_data
from ..scheduling.time_calculator import utcnow
from .repository import PaymentRepository

logger = logging.getLogger(__name__)

EVENT_SUCCESS = "success"
EVENT_FAILED = "failed"

PAYSTACK_EVENTS = {
    "charge.success": EVENT_SUCCESS,
    "charge.failed": EVENT_FAILED,
}

CHANNELS = {"card", "bank_transfer", "ussd", "qr_code", "mobile_money", "bank"}
CHANNEL_ALIASES = {"qr": "qr_code", "dedicated_nuban": "bank_transfer"}

OUTCOME_APPLIED = "applied"
OUTCOME_DUPLICATE = "duplicate"
OUTCOME_IGNORED = "ignored"


def normalize_channel(channel: Optional[str]) -> Optional[str]:
    """Map a provider channel onto the stored set; unknown channels become None"""
    if not channel:
        return None
    value = CHANNEL_ALIASES.get(channel.lower(), channel.lower())
    return value if value in CHANNELS else None


def parse_paid_at(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO timestamp like 2024-05-01T10:00:00.000Z into naive UTC"""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"⚠️ Unparseable paid_at value: {value}")
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


@dataclass
class PaymentEvent:
    event: str  # success | failed
    reference: str
    amount: Optional[int] = None
    paid_at: Optional[datetime] = None
    channel: Optional[str] = None
    gateway_response: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_transaction(cls, event: str, data: dict[str, Any]) -> "PaymentEvent":
        return cls(
            event=event,
            reference=data.get("reference", ""),
            amount=data.get("amount"),
            paid_at=parse_paid_at(data.get("paid_at") or data.get("paidAt")),
            channel=data.get("channel"),
            gateway_response=data.get("gateway_response"),
            raw=data,
        )

    @classmethod
    def from_webhook(cls, payload: dict[str, Any]) -> Optional["PaymentEvent"]:
        """Event for a Paystack webhook body, or None for event types we do not act on"""
        event = PAYSTACK_EVENTS.get(payload.get("event", ""))
        data = payload.get("data") or {}
        if event is None or not data.get("reference"):
            return None
        return cls.from_transaction(event, data)

    @classmethod
    def from_verification(cls, data: dict[str, Any]) -> Optional["PaymentEvent"]:
        """Event for a verify response; None while the transaction is still open"""
        status = data.get("status")
        if status == "success":
            return cls.from_transaction(EVENT_SUCCESS, data)
        if status in ("failed", "abandoned", "reversed"):
            return cls.from_transaction(EVENT_FAILED, data)
        return None


@dataclass
class ReconciliationResult:
    outcome: str
    reference: str
    payment_status: Optional[str] = None
    booking_status: Optional[str] = None

    @property
    def applied(self) -> bool:
        return self.outcome == OUTCOME_APPLIED


class PaymentReconciler:
    """Applies payment events exactly once per reference and status"""

    def __init__(self, db: Session, notifier: Optional[NotificationQueue] = None):
        self.db = db
        self.payment_repo = PaymentRepository()
        self.booking_repo = BookingRepository()
        self.notifier = notifier or NotificationQueue()

    def apply_event(self, event: PaymentEvent) -> ReconciliationResult:
        """
        Apply one event inside its own transaction.

        Raises:
            NotFoundError: no payment carries the event's reference
        """
        emails: list[tuple[str, Optional[str], dict]] = []

        def work() -> ReconciliationResult:
            emails.clear()
            payment = self.payment_repo.get_by_reference_for_update(self.db, event.reference)
            if payment is None:
                raise NotFoundError(f"Payment not found for reference {event.reference}")

            if payment.status == event.event:
                logger.info(f"🔁 Duplicate {event.event} event for {event.reference}, skipping")
                return ReconciliationResult(OUTCOME_DUPLICATE, event.reference, payment.status)

            if payment.status == EVENT_SUCCESS:
                logger.warning(f"⚠️ Ignoring {event.event} event for settled payment {event.reference}")
                return ReconciliationResult(OUTCOME_IGNORED, event.reference, payment.status)

            if event.amount is not None and event.amount != payment.amount:
                logger.warning(
                    f"⚠️ Amount mismatch for {event.reference}: expected {payment.amount}, got {event.amount}"
                )

            if event.event == EVENT_SUCCESS:
                booking_status = self._apply_success(payment, event, emails)
            else:
                booking_status = self._apply_failure(payment, event, emails)

            return ReconciliationResult(OUTCOME_APPLIED, event.reference, payment.status, booking_status)

        result = run_in_transaction(self.db, work)

        if result.applied:
            logger.info(f"✅ Payment {event.reference} marked {result.payment_status}")
            for template, recipient, data in emails:
                if recipient is None:
                    self.notifier.send_admin(template, data)
                else:
                    self.notifier.send(template, recipient, data)
        return result

    def _apply_success(self, payment: Payment, event: PaymentEvent, emails: list) -> Optional[str]:
        payment.status = EVENT_SUCCESS
        payment.raw = event.raw
        payment.payment_date = event.paid_at or utcnow()
        payment.channel = normalize_channel(event.channel)
        payment.failure_reason = None

        booking = self.booking_repo.get_for_update(self.db, payment.booking_id)
        if booking is None:
            logger.error(f"❌ Payment {payment.reference} points at missing booking {payment.booking_id}")
            return None

        if payment not in booking.payments:
            booking.payments.append(payment)

        if booking.status == BookingStatus.PENDING.value:
            record_status_change(
                booking,
                BookingStatus.DEPOSIT_PAID.value,
                note=f"Deposit received ({payment.reference})",
            )

        data = self._email_data(booking, payment)
        emails.append(("payment_confirmation", booking.client_email, data))
        emails.append(("admin_payment", None, data))
        return booking.status

    def _apply_failure(self, payment: Payment, event: PaymentEvent, emails: list) -> Optional[str]:
        payment.status = EVENT_FAILED
        payment.raw = event.raw
        payment.failure_reason = event.gateway_response or "Payment failed"
        if event.channel:
            payment.channel = normalize_channel(event.channel)

        booking = self.booking_repo.get_by_id(self.db, payment.booking_id)
        if booking is None:
            return None

        data = self._email_data(booking, payment)
        emails.append(("payment_failure", booking.client_email, data))
        emails.append(("admin_payment", None, data))
        return booking.status

    @staticmethod
    def _email_data(booking, payment: Payment) -> dict:
        data = booking_email_data(booking)
        data.update(
            {
                "reference": payment.reference,
                "amount": payment.amount_major,
                "currency": payment.currency,
                "paymentStatus": payment.status,
                "paymentDate": payment.payment_date.strftime("%B %d, %Y, %I:%M %p")
                if payment.payment_date
                else None,
                "channel": payment.channel,
                "failureReason": payment.failure_reason,
            }
        )
        return data
