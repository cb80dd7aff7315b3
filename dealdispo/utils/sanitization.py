import html
import re
from typing import Any, Optional

ZERO_VALUES = {"0", "$0", "$0.00"}

SAFE_URL_SCHEMES = ("http://", "https://")


def sanitize_string(value: Optional[Any]) -> str:
    """
    Escape HTML special characters so user text can be embedded in markup.
    Returns an empty string for None.
    """
    if value is None:
        return ""
    return html.escape(str(value), quote=True)


def sanitize_url(value: Optional[str]) -> str:
    """
    Escape a URL for use in an attribute. Anything that is not http(s)
    (javascript:, data:, relative paths) is dropped.
    """
    if not value:
        return ""
    value = value.strip()
    if not value.lower().startswith(SAFE_URL_SCHEMES):
        return ""
    return html.escape(value, quote=True)


def is_empty_or_zero(value: Optional[Any]) -> bool:
    """True for missing, blank, "0", "$0" and "$0.00" values."""
    if value is None:
        return True
    value = str(value).strip()
    return value == "" or value in ZERO_VALUES


def format_currency(value: Optional[str]) -> str:
    """
    Normalise free-text money input to whole dollars: "875000" -> "$875,000".
    Non-digits are stripped; input without digits becomes "".
    """
    if not value:
        return ""
    digits = re.sub(r"\D", "", str(value))
    if not digits:
        return ""
    return f"${int(digits):,}"


def split_lines(value: Optional[str]) -> list[str]:
    """Split multi-line text into its non-empty lines."""
    if not value:
        return []
    return [line for line in str(value).split("\n") if line.strip()]
