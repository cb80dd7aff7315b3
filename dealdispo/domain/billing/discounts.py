"""Discount codes and price arithmetic (amounts are integer cents)"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

DISCOUNT_CODES: dict[str, Decimal] = {
    "launch50": Decimal("0.50"),
    "launch25": Decimal("0.25"),
    "100off": Decimal("1.00"),
}


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().lower()


def discount_rate(code: Optional[str]) -> Decimal:
    """Fraction taken off for a code; unknown codes give no discount"""
    return DISCOUNT_CODES.get(normalize_code(code), Decimal("0"))


def is_valid_code(code: Optional[str]) -> bool:
    return normalize_code(code) in DISCOUNT_CODES


def apply_discount(amount: int, code: Optional[str]) -> int:
    """amount x (1 - discount), rounded half-up to whole cents"""
    discounted = Decimal(amount) * (Decimal("1") - discount_rate(code))
    return int(discounted.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_cents(amount: int) -> str:
    """19900 -> "$199.00" """
    return f"${Decimal(amount) / Decimal(100):,.2f}"
