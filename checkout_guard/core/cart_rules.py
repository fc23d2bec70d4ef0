"""Cart Integrity Rules — pure re-derivation of a cart from catalog records.

Invariants:
    - Output lines take price, title and image from the catalog; quantity from the client
    - No code path reads a client-declared price
    - First failing line rejects the whole cart (short-circuit, no partial carts)
    - A product id appears on at most one line; repeats reject the cart
    - Discount checks run in order: not found → inactive → expired → exhausted
    - Pure: records are loaded by the shell and passed in; nothing is mutated

Design Decisions:
    - Raises CartRejectedError instead of returning error dicts: the reason travels
      unchanged to the HTTP boundary through the global handler
"""

from datetime import datetime
from typing import Mapping, Sequence

from checkout_guard.core.domain_types import (
    CartLine,
    CartLineRequest,
    CartRejection,
    CatalogProduct,
    DiscountCode,
    ProductId,
    ProductType,
)
from checkout_guard.core.errors import CartRejectedError
from checkout_guard.core.pricing import calculate_line_levy


def normalize_discount_code(code: str | None) -> str | None:
    """Trim and uppercase; blank codes mean no code."""
    if code is None:
        return None
    normalized = code.strip().upper()
    return normalized or None


def requested_product_ids(items: Sequence[CartLineRequest]) -> set[ProductId]:
    return {item.product_id for item in items}


def check_no_duplicate_lines(items: Sequence[CartLineRequest]) -> None:
    """Stock is checked per line, so a product split across lines must not pass."""
    if len(requested_product_ids(items)) != len(items):
        raise CartRejectedError(
            CartRejection.PRODUCT_NOT_FOUND,
            "One or more products could not be found",
        )


def check_products_found(
    requested: set[ProductId], products: Mapping[ProductId, CatalogProduct],
) -> None:
    """Every requested id must resolve to exactly one catalog record."""
    if len(products) != len(requested) or not requested.issubset(products):
        raise CartRejectedError(
            CartRejection.PRODUCT_NOT_FOUND,
            "One or more products could not be found",
        )


def build_validated_line(
    item: CartLineRequest, product: CatalogProduct,
) -> CartLine:
    """Rebuild one line from its catalog record, or reject."""
    if not product.is_available:
        raise CartRejectedError(
            CartRejection.UNAVAILABLE,
            f"{product.title} is no longer available",
        )
    if (
        product.product_type is ProductType.PRINT
        and product.stock_quantity is not None
        and product.stock_quantity < item.quantity
    ):
        raise CartRejectedError(
            CartRejection.INSUFFICIENT_STOCK,
            f"Not enough stock for {product.title}. "
            f"Available: {product.stock_quantity}",
        )
    return CartLine(
        product_id=product.id,
        title=product.title,
        unit_price_minor=product.price_minor,
        quantity=item.quantity,
        image_url=product.image_url,
        levy_minor=calculate_line_levy(product.price_minor, item.quantity),
    )


def build_validated_lines(
    items: Sequence[CartLineRequest],
    products: Mapping[ProductId, CatalogProduct],
) -> list[CartLine]:
    check_no_duplicate_lines(items)
    check_products_found(requested_product_ids(items), products)
    return [build_validated_line(item, products[item.product_id]) for item in items]


def check_discount_usable(discount: DiscountCode | None, now: datetime) -> DiscountCode:
    """Return the discount if it may be applied right now, else reject."""
    if discount is None:
        raise CartRejectedError(
            CartRejection.DISCOUNT_NOT_FOUND, "Invalid discount code",
        )
    if not discount.is_active:
        raise CartRejectedError(
            CartRejection.DISCOUNT_INACTIVE,
            "This discount code is no longer active",
        )
    if discount.expires_at is not None and discount.expires_at < now:
        raise CartRejectedError(
            CartRejection.DISCOUNT_EXPIRED, "This discount code has expired",
        )
    if discount.uses_remaining is not None and discount.uses_remaining <= 0:
        raise CartRejectedError(
            CartRejection.DISCOUNT_EXHAUSTED,
            "This discount code has been fully redeemed",
        )
    return discount
