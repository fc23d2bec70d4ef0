"""Cart Validator — loads catalog records and applies the pure cart rules.

Invariants:
    - Read-only against the catalog and discount stores (no stock or usage mutation)
    - Every store read is bounded by timeout_ms
    - Store timeout or failure FAILS CLOSED: StoreUnreachableError, never a partial cart
    - The returned ValidatedCart is built only from catalog prices

Design Decisions:
    - Impureim sandwich: async reads here, decisions in core.cart_rules / core.pricing
    - Repositories passed per call: they are bound to the request's DB session
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Sequence, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from checkout_guard.core.cart_rules import (
    build_validated_lines,
    check_discount_usable,
    check_no_duplicate_lines,
    normalize_discount_code,
    requested_product_ids,
)
from checkout_guard.core.domain_types import (
    CartLineRequest, DiscountCode, ValidatedCart,
)
from checkout_guard.core.errors import DatabaseError, StoreUnreachableError
from checkout_guard.core.pricing import (
    calculate_discount, calculate_shipping, calculate_subtotal, calculate_totals,
)
from checkout_guard.core.repository_protocols import (
    CatalogRepository, DiscountRepository,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CartValidator:
    """Re-derives an authoritative cart from client product ids and quantities."""

    def __init__(
        self,
        timeout_ms: int = 3000,
        now: Callable[[], datetime] = utc_now,
    ):
        self._timeout = timeout_ms / 1000
        self._now = now

    async def validate_cart(
        self,
        items: Sequence[CartLineRequest],
        discount_code: str | None,
        catalog: CatalogRepository,
        discounts: DiscountRepository,
    ) -> ValidatedCart:
        check_no_duplicate_lines(items)
        products = await self._read(
            "catalog", catalog.get_products(requested_product_ids(items)),
        )
        lines = build_validated_lines(items, products)
        subtotal = calculate_subtotal(lines)

        code = normalize_discount_code(discount_code)
        discount_minor = 0
        if code is not None:
            discount = await self.load_usable_discount(code, discounts)
            discount_minor = calculate_discount(discount, subtotal)

        shipping = calculate_shipping(
            products[item.product_id].shipping_cost_minor for item in items
        )
        totals = calculate_totals(lines, discount_minor, shipping)
        return ValidatedCart(
            items=tuple(lines),
            discount_amount_minor=discount_minor,
            artist_levy_minor=totals.artist_levy_minor,
            totals=totals,
            discount_code=code,
        )

    async def load_usable_discount(
        self, normalized_code: str, discounts: DiscountRepository,
    ) -> DiscountCode:
        discount = await self._read(
            "discounts", discounts.get_by_code(normalized_code),
        )
        return check_discount_usable(discount, self._now())

    async def quote_discount(
        self, code: str, subtotal_minor: int, discounts: DiscountRepository,
    ) -> tuple[DiscountCode, int]:
        """Check a code and compute its amount for a client-reported subtotal.

        The result is informational only; checkout recomputes from the catalog.
        """
        normalized = normalize_discount_code(code) or ""
        discount = await self.load_usable_discount(normalized, discounts)
        return discount, calculate_discount(discount, subtotal_minor)

    async def _read(self, store: str, call: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(call, self._timeout)
        except asyncio.TimeoutError:
            logger.error(
                f"{store} read timed out after {self._timeout}s",
                extra={"store": store},
            )
            raise StoreUnreachableError(store)
        except (DatabaseError, SQLAlchemyError, OSError) as e:
            logger.error(
                f"{store} read failed: {e}", extra={"store": store}, exc_info=True,
            )
            raise StoreUnreachableError(store)
