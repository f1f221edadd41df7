"""
Payment gateway service (Razorpay).

Creates orders and verifies checkout signatures. Plan upgrades after a
verified payment are done by ProfileService.
"""
import hashlib
import hmac

import httpx

from planpdf.config import settings
from planpdf.errors import PaymentGatewayError
from planpdf.logging_config import logger

GATEWAY_TIMEOUT_SECONDS = 30.0


def to_minor_units(amount: float) -> int:
    """Rupees to paise."""
    return int(round(amount * 100))


def expected_signature(order_id: str, payment_id: str, secret: str) -> str:
    """Hex HMAC-SHA256 of "order_id|payment_id" keyed by the gateway secret."""
    message = f"{order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


class PaymentService:
    """Client for the payment gateway's REST API."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        self.transport = transport

    async def create_order(self, amount: float, currency: str = "INR", receipt: str | None = None) -> dict:
        """
        Create a gateway order.

        Args:
            amount: Amount in major units
            currency: ISO currency code
            receipt: Merchant receipt reference

        Returns:
            The gateway's order object

        Raises:
            ConfigurationError: if gateway keys are not set
            PaymentGatewayError: if the gateway rejects the order or is unreachable
        """
        key_id, key_secret = settings.require("RAZORPAY_KEY_ID", "RAZORPAY_KEY_SECRET")

        body = {"amount": to_minor_units(amount), "currency": currency}
        if receipt:
            body["receipt"] = receipt

        try:
            async with httpx.AsyncClient(
                base_url=settings.RAZORPAY_API_URL,
                auth=(key_id, key_secret),
                timeout=GATEWAY_TIMEOUT_SECONDS,
                transport=self.transport
            ) as client:
                response = await client.post("/orders", json=body)
        except httpx.HTTPError as e:
            logger.error("payment_order_request_failed", error=str(e))
            raise PaymentGatewayError(f"Payment gateway unreachable: {e}") from e

        if not response.is_success:
            logger.error("payment_order_rejected", status=response.status_code, body=response.text[:200])
            raise PaymentGatewayError(f"Failed to create order: {response.text[:200]}")

        order = response.json()
        logger.info("payment_order_created", order_id=order.get("id"), amount=body["amount"])
        return order

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """
        Check a checkout signature in constant time.

        Raises:
            ConfigurationError: if the gateway secret is not set
        """
        (key_secret,) = settings.require("RAZORPAY_KEY_SECRET")
        expected = expected_signature(order_id, payment_id, key_secret)
        return hmac.compare_digest(expected.encode(), signature.encode())
