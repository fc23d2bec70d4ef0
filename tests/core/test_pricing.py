"""Pricing (core) — integer money math.

Tests cover:
    - Subtotal from catalog unit prices
    - Percent discount floors; fixed discount clamps to subtotal
    - Artist levy threshold (strictly above 2 500 NOK) and rounding
    - Shipping picks the highest line cost; total never discounts shipping or levy
"""

import uuid

import pytest

from checkout_guard.core.domain_types import CartLine, DiscountCode, ProductId
from checkout_guard.core.pricing import (
    ARTIST_LEVY_THRESHOLD_MINOR,
    calculate_discount,
    calculate_line_levy,
    calculate_shipping,
    calculate_subtotal,
    calculate_totals,
)


def _line(price: int, qty: int = 1) -> CartLine:
    return CartLine(
        ProductId(uuid.uuid4()), "Art", price, qty,
        levy_minor=calculate_line_levy(price, qty),
    )


def test_subtotal_sums_price_times_quantity():
    assert calculate_subtotal([_line(10_000, 2), _line(5_000, 3)]) == 35_000


def test_percent_discount_floors():
    discount = DiscountCode("P", True, percent=15)
    assert calculate_discount(discount, 999) == 149


def test_percent_wins_over_amount():
    discount = DiscountCode("P", True, percent=10, amount_minor=50_000)
    assert calculate_discount(discount, 100_000) == 10_000


def test_fixed_discount_clamped():
    discount = DiscountCode("F", True, amount_minor=50_000)
    assert calculate_discount(discount, 30_000) == 30_000
    assert calculate_discount(discount, 80_000) == 50_000


def test_percent_over_hundred_clamped():
    discount = DiscountCode("P", True, percent=150)
    assert calculate_discount(discount, 10_000) == 10_000


def test_empty_discount_is_zero():
    assert calculate_discount(DiscountCode("Z", True), 10_000) == 0


def test_zero_percent_still_wins_over_amount():
    discount = DiscountCode("P", True, percent=0, amount_minor=5_000)
    assert calculate_discount(discount, 10_000) == 0


def test_negative_amount_clamped_to_zero():
    discount = DiscountCode("F", True, amount_minor=-5_000)
    assert calculate_discount(discount, 10_000) == 0


@pytest.mark.parametrize("price, qty, expected", [
    (ARTIST_LEVY_THRESHOLD_MINOR, 1, 0),
    (ARTIST_LEVY_THRESHOLD_MINOR + 1, 1, 12_500),
    (300_000, 2, 30_000),
    (250_010, 1, 12_501),
])
def test_line_levy(price, qty, expected):
    assert calculate_line_levy(price, qty) == expected


def test_shipping_is_maximum_line_cost():
    assert calculate_shipping([None, 4_900, 19_900, 0]) == 19_900
    assert calculate_shipping([]) == 0


def test_totals_apply_discount_to_subtotal_only():
    lines = [_line(300_000), _line(10_000)]
    totals = calculate_totals(lines, discount_minor=400_000, shipping_minor=9_900)

    assert totals.subtotal_minor == 310_000
    assert totals.artist_levy_minor == 15_000
    assert totals.total_minor == 0 + 9_900 + 15_000
