"""Payment service - Business logic for initializing, verifying and reconciling payments"""

import logging
import secrets
import time
from typing import Any, Optional

from sqlalchemy.orm import Session

from ...config import DEFAULT_CURRENCY
from ...database import run_in_transaction
from ...models import Booking, Payment
from ...services.notification_service import NotificationQueue
from ...shared.errors import NotFoundError, ValidationError
from ..bookings.lifecycle import BookingStatus
from ..bookings.repository import BookingRepository
from .paystack_service import PaystackService
from .reconciliation import PaymentEvent, PaymentReconciler, ReconciliationResult
from .repository import PaymentRepository

logger = logging.getLogger(__name__)

PROVIDER_NAME = "paystack"
MIN_AMOUNT_MINOR = 100
OPEN_STATUSES = ("initialized", "pending")


def generate_reference() -> str:
    """Unique payment reference: party_pallet_<epoch ms>_<16 hex chars>"""
    return f"party_pallet_{int(time.time() * 1000)}_{secrets.token_hex(8)}"


def to_minor_units(amount: float) -> int:
    return int(round(amount * 100))


class PaymentService:
    """Service layer for payment business logic"""

    def __init__(
        self,
        db: Session,
        provider: PaystackService,
        notifier: Optional[NotificationQueue] = None,
    ):
        self.db = db
        self.provider = provider
        self.repo = PaymentRepository()
        self.booking_repo = BookingRepository()
        self.reconciler = PaymentReconciler(db, notifier)

    def _payable_booking(self, booking_id: str) -> Booking:
        booking = self.booking_repo.get_by_id(self.db, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")
        if booking.status == BookingStatus.CANCELLED.value:
            raise ValidationError("Cannot pay for a cancelled booking")
        if self.repo.has_successful_payment(self.db, booking_id):
            raise ValidationError("Payment already completed for this booking")
        return booking

    async def initialize_payment(
        self,
        booking_id: str,
        amount: float,
        email: str,
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Start a checkout with the provider and record the payment

        Returns:
            dict with the stored payment and the provider's authorization_url
        """
        booking = self._payable_booking(booking_id)
        if amount < (booking.deposit_required or 0):
            raise ValidationError(
                f"Amount must be at least the required deposit of {booking.deposit_required:,.2f}"
            )

        amount_minor = to_minor_units(amount)
        if amount_minor < MIN_AMOUNT_MINOR:
            raise ValidationError("Amount is below the minimum chargeable value")

        return await self._start_checkout(booking, amount_minor, email, client_ip, user_agent)

    async def retry_payment(
        self,
        booking_id: str,
        email: str,
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> dict[str, Any]:
        """Start a new checkout for the amount of the booking's last failed payment"""
        booking = self._payable_booking(booking_id)
        failed = self.repo.latest_for_booking(self.db, booking_id, status="failed")
        if failed is None:
            raise NotFoundError("No failed payment found for this booking")

        logger.info(f"🔄 Retrying payment {failed.reference} for booking {booking_id}")
        return await self._start_checkout(booking, failed.amount, email, client_ip, user_agent)

    async def _start_checkout(
        self,
        booking: Booking,
        amount_minor: int,
        email: str,
        client_ip: Optional[str],
        user_agent: Optional[str],
    ) -> dict[str, Any]:
        reference = generate_reference()
        currency = (booking.currency or DEFAULT_CURRENCY).upper()

        # Provider first: a failed call leaves no orphan payment row
        response = await self.provider.initialize_transaction(
            email=email,
            amount=amount_minor,
            reference=reference,
            currency=currency,
            metadata={"bookingId": booking.id, "clientName": booking.client_full_name},
        )

        def work() -> Payment:
            return self.repo.create(
                self.db,
                booking_id=booking.id,
                provider=PROVIDER_NAME,
                reference=reference,
                amount=amount_minor,
                currency=currency,
                status="initialized",
                raw=response,
                client_ip=client_ip,
                user_agent=user_agent,
            )

        payment = run_in_transaction(self.db, work)
        logger.info(f"💳 Payment {reference} initialized for booking {booking.id}")
        return {
            "payment": payment,
            "authorization_url": response.get("authorization_url"),
            "access_code": response.get("access_code"),
        }

    async def verify_payment(self, reference: str) -> Payment:
        """
        Refresh an open payment from the provider and return its current state.

        Settled payments are returned without calling the provider.
        """
        payment = self.repo.get_by_reference(self.db, reference)
        if payment is None:
            raise NotFoundError("Payment not found")

        if payment.status in OPEN_STATUSES:
            data = await self.provider.verify_transaction(reference)
            event = PaymentEvent.from_verification(data)
            if event is not None:
                self.reconciler.apply_event(event)
            else:
                logger.info(f"🔍 Payment {reference} still {data.get('status')} at provider")

        self.db.expire_all()
        return self.repo.get_by_reference(self.db, reference)

    def latest_for_booking(self, booking_id: str) -> Payment:
        payment = self.repo.latest_for_booking(self.db, booking_id)
        if payment is None:
            raise NotFoundError("Payment not found")
        return payment

    def handle_webhook_event(self, payload: dict[str, Any]) -> Optional[ReconciliationResult]:
        """Apply an authenticated webhook body; unsupported events are acknowledged and dropped"""
        event = PaymentEvent.from_webhook(payload)
        if event is None:
            logger.info(f"📥 Ignoring webhook event {payload.get('event')}")
            return None
        return self.reconciler.apply_event(event)
