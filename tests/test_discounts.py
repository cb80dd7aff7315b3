from dealdispo.domain.billing.discounts import (
    apply_discount,
    discount_rate,
    format_cents,
    is_valid_code,
    normalize_code,
)


def test_known_codes_apply_their_rate():
    assert apply_discount(19900, "launch50") == 9950
    assert apply_discount(19900, "launch25") == 14925
    assert apply_discount(19900, "100off") == 0


def test_codes_are_case_insensitive_and_trimmed():
    assert normalize_code("  LAUNCH50 ") == "launch50"
    assert is_valid_code("Launch25")
    assert apply_discount(19900, " 100OFF ") == 0


def test_unknown_or_missing_code_leaves_amount_unchanged():
    assert apply_discount(19900, "bogus") == 19900
    assert apply_discount(19900, None) == 19900
    assert discount_rate("") == 0
    assert not is_valid_code(None)


def test_rounding_is_half_up():
    # 199 * 0.75 = 149.25 -> 149; 3 * 0.5 = 1.5 -> 2
    assert apply_discount(199, "launch25") == 149
    assert apply_discount(3, "launch50") == 2


def test_format_cents():
    assert format_cents(19900) == "$199.00"
    assert format_cents(9950) == "$99.50"
    assert format_cents(0) == "$0.00"
    assert format_cents(123456789) == "$1,234,567.89"
