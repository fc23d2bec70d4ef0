"""Checkout Service — token → schema → cart re-validation → payment session.

Invariants:
    - Runs after the Origin Guard and Rate Limiter (route dependencies)
    - No payment session is created unless the token verified AND the cart re-validated
    - The amount sent to the payment provider is ValidatedCart.totals.total_minor, always
    - Nothing is persisted here; order finalization belongs to the payment callback

Design Decisions:
    - Token checked before schema validation: scripted clients without a token
      learn nothing about the request shape
"""

import logging
import secrets
import string
from dataclasses import dataclass
from typing import Callable

from checkout_guard.core.domain_types import PaymentRequest, ValidatedCart
from checkout_guard.core.errors import RequestValidationFailed
from checkout_guard.core.repository_protocols import (
    CatalogRepository, DiscountRepository, PaymentGateway,
)
from checkout_guard.schemas.checkout import CheckoutRequest, parse_checkout_request
from checkout_guard.services.cart_validator import CartValidator
from checkout_guard.services.checkout_tokens import CheckoutTokenService
from checkout_guard.services.rate_limiter import wall_clock_ms

logger = logging.getLogger(__name__)

_REFERENCE_ALPHABET = string.ascii_uppercase + string.digits


def generate_reference(now_ms: int) -> str:
    """Format: ORD-<epoch-ms>-<6 uppercase alphanumerics>."""
    suffix = "".join(secrets.choice(_REFERENCE_ALPHABET) for _ in range(6))
    return f"ORD-{now_ms}-{suffix}"


def describe_order(cart: ValidatedCart, locale: str) -> str:
    if len(cart.items) == 1:
        return cart.items[0].title
    noun = "items from Dotty." if locale == "en" else "produkter fra Dotty."
    return f"{len(cart.items)} {noun}"


@dataclass(frozen=True)
class CheckoutOutcome:
    reference: str
    redirect_url: str
    cart: ValidatedCart
    request: CheckoutRequest


class CheckoutService:

    def __init__(
        self,
        tokens: CheckoutTokenService,
        validator: CartValidator,
        payments: PaymentGateway,
        return_url: str,
        clock: Callable[[], int] = wall_clock_ms,
    ):
        self._tokens = tokens
        self._validator = validator
        self._payments = payments
        self._return_url = return_url
        self._clock = clock

    async def submit(
        self,
        payload: object,
        catalog: CatalogRepository,
        discounts: DiscountRepository,
    ) -> CheckoutOutcome:
        token = payload.get("checkout_token") if isinstance(payload, dict) else None
        self._tokens.verify(token if isinstance(token, str) else None)

        parsed = parse_checkout_request(payload)
        if not parsed.ok:
            raise RequestValidationFailed([e.as_dict() for e in parsed.errors])
        request = parsed.value

        cart = await self._validator.validate_cart(
            request.line_records(), request.discount_code, catalog, discounts,
        )

        reference = generate_reference(self._clock())
        session = await self._payments.create_session(PaymentRequest(
            reference=reference,
            amount_minor=cart.totals.total_minor,
            description=describe_order(cart, request.locale),
            customer_email=request.customer_email,
            customer_phone=request.customer_phone,
            return_url=f"{self._return_url}?reference={reference}&locale={request.locale}",
            locale=request.locale,
        ))
        logger.info(
            "Payment session created",
            extra={"reference": reference},
        )
        return CheckoutOutcome(
            reference=reference,
            redirect_url=session.redirect_url,
            cart=cart,
            request=request,
        )
