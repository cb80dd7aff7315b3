"""Billing service - pricing and charging a listing draft"""

import logging
from typing import Any, Optional

from ...config import PAYMENT_BASE_AMOUNT, PAYMENT_CURRENCY
from ...services.square_service import PaymentError, SquarePaymentService, web_payments_config
from ..listing.models import PaymentRecord, PaymentStatus
from .discounts import apply_discount, discount_rate, format_cents, is_valid_code, normalize_code

logger = logging.getLogger(__name__)


class BillingService:
    def __init__(self, payments: SquarePaymentService, base_amount: int = PAYMENT_BASE_AMOUNT):
        self.payments = payments
        self.base_amount = base_amount

    def payment_config(self) -> dict[str, Any]:
        return {
            **web_payments_config(),
            "baseAmount": self.base_amount,
            "baseDisplay": format_cents(self.base_amount),
            "currency": PAYMENT_CURRENCY,
        }

    def quote(self, amount: Optional[int] = None, discount_code: Optional[str] = None) -> dict[str, Any]:
        original = self.base_amount if amount is None else amount
        valid = is_valid_code(discount_code)
        final = apply_discount(original, discount_code)
        return {
            "originalAmount": original,
            "finalAmount": final,
            "discountCode": normalize_code(discount_code) if valid else None,
            "discountApplied": valid,
            "discountPercent": int(discount_rate(discount_code) * 100),
            "originalDisplay": format_cents(original),
            "finalDisplay": format_cents(final),
        }

    async def process_payment(self, source_id: str, amount: int, note: Optional[str] = None) -> dict[str, Any]:
        """Charge `amount` cents as given; discounts are not re-applied"""
        return await self.payments.create_payment(source_id, amount, note=note)

    async def pay_for_draft(
        self, draft_id: str, source_id: Optional[str], discount_code: Optional[str]
    ) -> PaymentRecord:
        """
        Charge the base price less any discount for one draft.

        A fully discounted draft is marked waived without contacting Square.

        Raises:
            PaymentError: card missing, declined, or Square unreachable
        """
        amount = apply_discount(self.base_amount, discount_code)
        code = normalize_code(discount_code) if is_valid_code(discount_code) else None

        if amount == 0:
            logger.info(f"Payment waived for draft {draft_id} with code {code}")
            return PaymentRecord(status=PaymentStatus.WAIVED, amount=0, discount_code=code)

        if not source_id:
            raise PaymentError("A card is required for this payment", status_code=400)

        result = await self.payments.create_payment(source_id, amount, note=f"Listing email {draft_id}")
        payment = result.get("payment", {})
        if payment.get("status") not in ("COMPLETED", "APPROVED"):
            raise PaymentError(
                f"Payment not completed (status {payment.get('status')})", status_code=402, body=result
            )
        return PaymentRecord(
            status=PaymentStatus.COMPLETED,
            amount=amount,
            discount_code=code,
            payment_id=payment.get("id"),
        )
