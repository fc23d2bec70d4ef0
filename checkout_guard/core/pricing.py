"""Pricing — integer money math for subtotal, discount, artist levy, shipping, totals.

Invariants:
    - All inputs and outputs are ints in minor units; no floats anywhere
    - Percent discount = floor(subtotal * percent / 100); percent wins whenever set,
      even at 0
    - Discount is clamped to [0, subtotal]: the discounted subtotal is never negative
    - Artist levy is computed per line and summed (single canonical rule)
    - total = max(0, subtotal - discount) + shipping + levy

Design Decisions:
    - Levy per line: unit price strictly above ARTIST_LEVY_THRESHOLD_MINOR qualifies,
      levy = round_half_up(unit * 5%) * quantity (ADR: resale-right is assessed per work)
    - Shipping = highest per-line shipping cost: one parcel per order
"""

from typing import Iterable

from checkout_guard.core.domain_types import CartLine, CartTotals, DiscountCode

ARTIST_LEVY_RATE_PERCENT: int = 5
ARTIST_LEVY_THRESHOLD_MINOR: int = 250_000  # 2 500 NOK


def calculate_subtotal(lines: Iterable[CartLine]) -> int:
    return sum(line.line_total_minor for line in lines)


def calculate_line_levy(unit_price_minor: int, quantity: int) -> int:
    """Artist levy for one line; zero at or below the threshold."""
    if unit_price_minor <= ARTIST_LEVY_THRESHOLD_MINOR:
        return 0
    per_unit = (unit_price_minor * ARTIST_LEVY_RATE_PERCENT + 50) // 100
    return per_unit * quantity


def calculate_artist_levy(lines: Iterable[CartLine]) -> int:
    return sum(line.levy_minor for line in lines)


def calculate_discount(discount: DiscountCode, subtotal_minor: int) -> int:
    """Discount amount for an already-usable code."""
    if discount.percent is not None:
        amount = subtotal_minor * discount.percent // 100
    elif discount.amount_minor is not None:
        amount = discount.amount_minor
    else:
        return 0
    return max(0, min(amount, subtotal_minor))


def calculate_shipping(shipping_costs: Iterable[int | None]) -> int:
    return max((cost or 0 for cost in shipping_costs), default=0)


def calculate_totals(
    lines: Iterable[CartLine], discount_minor: int, shipping_minor: int,
) -> CartTotals:
    lines = list(lines)
    subtotal = calculate_subtotal(lines)
    levy = calculate_artist_levy(lines)
    discounted = max(0, subtotal - discount_minor)
    return CartTotals(
        subtotal_minor=subtotal,
        discount_minor=discount_minor,
        shipping_minor=shipping_minor,
        artist_levy_minor=levy,
        total_minor=discounted + shipping_minor + levy,
    )
