"""Checkout — token issuance and checkout submission.

Invariants:
    - GET /token is a cheap read; it must be called before POST / will succeed
    - POST / runs Origin Guard → Rate Limiter → token → schema → cart → payment
    - Response totals are the server's; client-sent pricing fields never appear
"""

from fastapi import APIRouter, Body, Depends, status

from checkout_guard.api.dependencies import (
    get_catalog, get_discounts, get_services, rate_limited, require_allowed_origin,
)
from checkout_guard.core.rate_limit import CHECKOUT_LIMIT
from checkout_guard.infrastructure.catalog_repository import (
    SqlCatalogRepository, SqlDiscountRepository,
)
from checkout_guard.schemas.responses import CheckoutResponse, TokenResponse
from checkout_guard.services.container import ServiceContainer

router = APIRouter(prefix="/api/v1/checkout", tags=["checkout"])


@router.get("/token", response_model=TokenResponse)
async def issue_checkout_token(
    services: ServiceContainer = Depends(get_services),
):
    """Issue a short-lived checkout token."""
    return TokenResponse(token=services.tokens.issue())


@router.post(
    "",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[
        Depends(require_allowed_origin),
        Depends(rate_limited(
            "checkout", CHECKOUT_LIMIT,
            "Too many payment attempts. Please wait a minute and try again.",
        )),
    ],
)
async def submit_checkout(
    payload: dict = Body(...),
    services: ServiceContainer = Depends(get_services),
    catalog: SqlCatalogRepository = Depends(get_catalog),
    discounts: SqlDiscountRepository = Depends(get_discounts),
):
    """Re-validate the cart and open a payment session."""
    outcome = await services.checkout.submit(payload, catalog, discounts)
    return CheckoutResponse.build(
        outcome.reference, outcome.redirect_url, outcome.cart,
    )
