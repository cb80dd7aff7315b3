"""
Square Payment Service
Charges a card nonce produced by the Web Payments SDK in the browser
"""
import logging
import uuid
from typing import Any, Dict, Optional

import httpx

from ..config import (
    PAYMENT_CURRENCY,
    SQUARE_ACCESS_TOKEN,
    SQUARE_APPLICATION_ID,
    SQUARE_ENVIRONMENT,
    SQUARE_LOCATION_ID,
)

logger = logging.getLogger(__name__)

SQUARE_VERSION = "2024-12-18"

if SQUARE_ENVIRONMENT == "production":
    SQUARE_API_URL = "https://connect.squareup.com/v2"
    SQUARE_WEB_SDK_URL = "https://web.squarecdn.com/v1/square.js"
else:
    SQUARE_API_URL = "https://connect.squareupsandbox.com/v2"
    SQUARE_WEB_SDK_URL = "https://sandbox.web.squarecdn.com/v1/square.js"


class PaymentError(Exception):
    """Square declined or failed the charge; carries the upstream body"""

    def __init__(self, message: str, status_code: int = 502, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body if body is not None else {"error": message}


def web_payments_config() -> Dict[str, Any]:
    """Settings the browser needs to tokenize a card"""
    return {
        "applicationId": SQUARE_APPLICATION_ID,
        "locationId": SQUARE_LOCATION_ID,
        "environment": SQUARE_ENVIRONMENT,
        "sdkUrl": SQUARE_WEB_SDK_URL,
    }


class SquarePaymentService:
    def __init__(
        self,
        access_token: Optional[str] = SQUARE_ACCESS_TOKEN,
        location_id: Optional[str] = SQUARE_LOCATION_ID,
        currency: str = PAYMENT_CURRENCY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = access_token
        self.location_id = location_id
        self.currency = currency
        self._transport = transport

    async def create_payment(self, source_id: str, amount: int, note: Optional[str] = None) -> Dict[str, Any]:
        """
        Charge `amount` cents against a card token.

        Every call uses a new idempotency key, so a user retrying after a
        failure creates a new charge attempt rather than replaying the old one.

        Returns:
            Square's response body ({"payment": {...}})
        """
        if not self.access_token:
            raise PaymentError("Square is not configured", status_code=500)

        payload: Dict[str, Any] = {
            "source_id": source_id,
            "idempotency_key": str(uuid.uuid4()),
            "amount_money": {"amount": amount, "currency": self.currency},
        }
        if self.location_id:
            payload["location_id"] = self.location_id
        if note:
            payload["note"] = note

        logger.info(f"Processing payment of {amount} {self.currency}")
        async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as http_client:
            response = await http_client.post(
                f"{SQUARE_API_URL}/payments",
                json=payload,
                headers={
                    "Square-Version": SQUARE_VERSION,
                    "Authorization": f"Bearer {self.access_token}",
                    "Content-Type": "application/json",
                },
            )

        try:
            body = response.json()
        except ValueError:
            body = {"error": response.text}

        if response.status_code not in [200, 201]:
            logger.error(f"❌ Square payment failed: {body}")
            message = "Payment processing failed"
            errors = body.get("errors") if isinstance(body, dict) else None
            if errors:
                message = errors[0].get("detail") or errors[0].get("code") or message
            raise PaymentError(message, status_code=response.status_code, body=body)

        payment = body.get("payment", {})
        logger.info(f"✅ Square payment {payment.get('id')} status {payment.get('status')}")
        return body


def get_square_payment_service() -> SquarePaymentService:
    """Dependency injection for SquarePaymentService"""
    return SquarePaymentService()
