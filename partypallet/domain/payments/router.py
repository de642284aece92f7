"""Payment router - FastAPI endpoints for checkout, verification and webhooks"""

import json
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ...config import PAYSTACK_WEBHOOK_SECRET
from ...database import get_db
from ...services.notification_service import NotificationQueue, get_notification_queue
from ...shared.errors import AuthenticationError, BookingEngineError
from ...webhook_security import verify_paystack_webhook
from .paystack_service import PaystackService, get_payment_provider
from .schemas import PaymentInitializeRequest, PaymentResponse, PaymentRetryRequest
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(
    db: Session = Depends(get_db),
    provider: PaystackService = Depends(get_payment_provider),
    notifier: NotificationQueue = Depends(get_notification_queue),
) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db, provider, notifier)


def _client_details(request: Request) -> dict:
    return {
        "client_ip": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }


@router.post("/initialize")
async def initialize_payment(
    data: PaymentInitializeRequest,
    request: Request,
    service: PaymentService = Depends(get_payment_service),
):
    """Start a checkout for a booking deposit or balance"""
    result = await service.initialize_payment(
        data.bookingId, data.amount, data.email, **_client_details(request)
    )
    return {
        "success": True,
        "message": "Payment initialized",
        "authorizationUrl": result["authorization_url"],
        "accessCode": result["access_code"],
        "payment": PaymentResponse.from_model(result["payment"]),
    }


@router.post("/retry")
async def retry_payment(
    data: PaymentRetryRequest,
    request: Request,
    service: PaymentService = Depends(get_payment_service),
):
    """Start a new checkout after a failed payment"""
    result = await service.retry_payment(data.bookingId, data.email, **_client_details(request))
    return {
        "success": True,
        "message": "Payment retry initialized",
        "authorizationUrl": result["authorization_url"],
        "accessCode": result["access_code"],
        "payment": PaymentResponse.from_model(result["payment"]),
    }


@router.get("/verify/{reference}")
async def verify_payment(
    reference: str,
    service: PaymentService = Depends(get_payment_service),
):
    """Verify a payment with the provider and return its current state"""
    payment = await service.verify_payment(reference)
    return {"success": True, "payment": PaymentResponse.from_model(payment)}


@router.get("/booking/{booking_id}")
async def get_booking_payment(
    booking_id: str,
    service: PaymentService = Depends(get_payment_service),
):
    """Get the latest payment for a booking"""
    payment = service.latest_for_booking(booking_id)
    return {"success": True, "payment": PaymentResponse.from_model(payment)}


@router.post("/webhook")
async def paystack_webhook(
    request: Request,
    service: PaymentService = Depends(get_payment_service),
):
    """
    Paystack webhook receiver.

    Returns 401 for unsigned or mis-signed bodies. Authentic bodies are always
    acknowledged with 200, so the provider stops redelivering events we cannot act on.
    """
    _, raw_body = await verify_paystack_webhook(request, PAYSTACK_WEBHOOK_SECRET)

    try:
        payload = json.loads(raw_body)
    except json.JSONDecodeError:
        logger.error("❌ Webhook body is not valid JSON")
        return {"success": True, "message": "Webhook received"}
    if not isinstance(payload, dict):
        logger.error("❌ Webhook body is not a JSON object")
        return {"success": True, "message": "Webhook received"}

    logger.info(f"📥 Paystack webhook: {payload.get('event')}")
    try:
        result = service.handle_webhook_event(payload)
        if result is not None:
            logger.info(f"✅ Webhook {result.reference}: {result.outcome}")
    except AuthenticationError:
        raise
    except BookingEngineError as e:
        logger.warning(f"⚠️ Webhook acknowledged without effect: {e.message}")

    return {"success": True, "message": "Webhook received"}
