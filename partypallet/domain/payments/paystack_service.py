"""Paystack service - Integration with the Paystack transactions API"""

import logging
from typing import Any, Optional

import httpx

from ...config import PAYSTACK_BASE_URL, PAYSTACK_CALLBACK_URL, PAYSTACK_SECRET_KEY
from ...shared.errors import PaymentProviderError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 15.0


class PaystackService:
    """Service for Paystack API operations"""

    def __init__(
        self,
        secret_key: Optional[str] = PAYSTACK_SECRET_KEY,
        base_url: str = PAYSTACK_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.transport = transport

        if not self.secret_key:
            logger.warning("PAYSTACK_SECRET_KEY not set; payment endpoints will fail until configured")

    def is_available(self) -> bool:
        """Check if Paystack credentials are configured"""
        return bool(self.secret_key)

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> dict[str, Any]:
        if not self.is_available():
            raise PaymentProviderError("Payment provider is not configured")

        headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=REQUEST_TIMEOUT_SECONDS, transport=self.transport
            ) as client:
                response = await client.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"❌ Paystack {method} {path} failed: {e}")
            raise PaymentProviderError(f"Payment provider unreachable: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400 or not body.get("status"):
            message = body.get("message") or f"HTTP {response.status_code}"
            logger.error(f"❌ Paystack {method} {path} returned {response.status_code}: {message}")
            raise PaymentProviderError(f"Payment provider error: {message}")

        return body.get("data") or {}

    async def initialize_transaction(
        self,
        email: str,
        amount: int,
        reference: str,
        currency: str = "NGN",
        callback_url: Optional[str] = PAYSTACK_CALLBACK_URL,
        metadata: Optional[dict] = None,
    ) -> dict[str, Any]:
        """
        Start a Paystack transaction

        Args:
            email: Customer email
            amount: Amount in minor units (kobo)
            reference: Our unique payment reference
            currency: ISO currency code
            callback_url: Where Paystack redirects after checkout
            metadata: Extra data echoed back in webhooks

        Returns:
            Paystack data with authorization_url, access_code and reference
        """
        payload = {
            "email": email,
            "amount": amount,
            "reference": reference,
            "currency": currency,
            "metadata": metadata or {},
        }
        if callback_url:
            payload["callback_url"] = callback_url

        logger.info(f"💳 Initializing Paystack transaction {reference} for {amount} {currency} minor units")
        return await self._request("POST", "/transaction/initialize", json=payload)

    async def verify_transaction(self, reference: str) -> dict[str, Any]:
        """Fetch the current state of a transaction by reference"""
        logger.info(f"🔍 Verifying Paystack transaction {reference}")
        return await self._request("GET", f"/transaction/verify/{reference}")


def get_payment_provider() -> PaystackService:
    """Dependency injection for the payment provider"""
    return PaystackService()
