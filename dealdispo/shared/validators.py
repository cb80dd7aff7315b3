"""Shared validation utilities for contact details"""

import re
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def normalize_us_phone(phone: Optional[str]) -> Optional[str]:
    """
    "(904) 335-8553", "904.335.8553" or "+1 904 335 8553" -> "+19043358553".
    Returns None when the digits do not form a US number.
    """
    digits = re.sub(r"\D", "", phone or "")
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    if len(digits) != 10:
        return None
    return f"+1{digits}"


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email.strip()) is not None


def is_valid_us_phone(phone: Optional[str]) -> bool:
    return normalize_us_phone(phone) is not None
