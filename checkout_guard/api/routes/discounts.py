"""Discount Lookup — lets the checkout page preview a discount code.

Invariants:
    - Origin guarded and rate limited per client IP
    - The quoted amount is informational; checkout recomputes from catalog prices
"""

from fastapi import APIRouter, Depends

from checkout_guard.api.dependencies import (
    get_discounts, get_services, rate_limited, require_allowed_origin,
)
from checkout_guard.core.rate_limit import DISCOUNT_LOOKUP_LIMIT
from checkout_guard.infrastructure.catalog_repository import SqlDiscountRepository
from checkout_guard.schemas.checkout import DiscountLookupRequest
from checkout_guard.schemas.responses import DiscountQuoteResponse
from checkout_guard.services.container import ServiceContainer

router = APIRouter(prefix="/api/v1/discounts", tags=["discounts"])


@router.post(
    "/validate",
    response_model=DiscountQuoteResponse,
    dependencies=[
        Depends(require_allowed_origin),
        Depends(rate_limited("discount", DISCOUNT_LOOKUP_LIMIT)),
    ],
)
async def validate_discount(
    body: DiscountLookupRequest,
    services: ServiceContainer = Depends(get_services),
    discounts: SqlDiscountRepository = Depends(get_discounts),
):
    """Check a code and quote its amount against the reported subtotal."""
    discount, amount = await services.cart_validator.quote_discount(
        body.code, body.subtotal, discounts,
    )
    return DiscountQuoteResponse(
        code=discount.code,
        discount_percent=discount.percent,
        discount_amount=discount.amount_minor,
        calculated_discount=amount,
    )
