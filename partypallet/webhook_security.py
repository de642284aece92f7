"""
Webhook Security Module

Signature verification for payment provider webhooks:
- Constant-time signature comparison
- Verification against the raw request body, before any JSON parsing
"""

import hashlib
import hmac
import logging
from typing import Optional

from fastapi import Request

from .shared.errors import AuthenticationError

logger = logging.getLogger(__name__)

PAYSTACK_SIGNATURE_HEADER = "x-paystack-signature"


def constant_time_compare(a: str, b: str) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.
    Uses hmac.compare_digest which is designed for this purpose.
    """
    if not a or not b:
        return False
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def compute_hmac_sha512(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA512 signature of payload as lowercase hex"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha512).hexdigest()


def verify_paystack_signature(secret: Optional[str], payload: bytes, signature: Optional[str]) -> bool:
    """Check a Paystack signature (HMAC-SHA512 hex of the raw body)"""
    if not secret or not signature:
        return False
    return constant_time_compare(compute_hmac_sha512(secret, payload), signature.strip().lower())


async def verify_paystack_webhook(
    request: Request, secret: Optional[str], raise_on_failure: bool = True
) -> tuple[bool, bytes]:
    """
    Verify a Paystack webhook request.

    Args:
        request: FastAPI request object
        secret: Paystack secret key used to sign webhooks
        raise_on_failure: If True, raises AuthenticationError on failure

    Returns:
        Tuple of (is_valid, raw_body)
    """
    # Get raw body BEFORE any parsing
    raw_body = await request.body()
    signature = request.headers.get(PAYSTACK_SIGNATURE_HEADER, "")

    logger.debug(f"📥 Paystack webhook received ({len(raw_body)} bytes)")

    if not secret:
        logger.error("❌ PAYSTACK_WEBHOOK_SECRET not configured, rejecting webhook")
        if raise_on_failure:
            raise AuthenticationError("Webhook verification is not configured")
        return False, raw_body

    if not signature:
        logger.warning("🚫 Paystack webhook missing signature header")
        if raise_on_failure:
            raise AuthenticationError("Missing webhook signature")
        return False, raw_body

    if not verify_paystack_signature(secret, raw_body, signature):
        logger.warning("🚫 Paystack webhook signature mismatch")
        if raise_on_failure:
            raise AuthenticationError("Invalid webhook signature")
        return False, raw_body

    logger.debug("✅ Paystack webhook signature verified")
    return True, raw_body


def create_webhook_signature(secret: str, payload: bytes) -> str:
    """Create a Paystack-format signature for testing or replaying webhooks"""
    return compute_hmac_sha512(secret, payload)
