"""Test doubles for the checkout boundary — payment gateway, repositories, payload builder.

Design Decisions:
    - Plain classes satisfying the Protocols in core/repository_protocols.py (no mocks)
"""

import asyncio

from checkout_guard.core.domain_types import (
    CatalogProduct, DiscountCode, PaymentRequest, PaymentSession, ProductId,
)

ALLOWED_ORIGIN = "https://dotty.no"


class FakePaymentGateway:
    """Records every PaymentRequest and returns a predictable session."""

    def __init__(self, error: Exception | None = None):
        self.requests: list[PaymentRequest] = []
        self.error = error

    async def create_session(self, request: PaymentRequest) -> PaymentSession:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return PaymentSession(
            session_id=f"pay_{len(self.requests)}",
            redirect_url=f"https://pay.test/session/{request.reference}",
        )


class FakeCatalog:
    def __init__(self, *products: CatalogProduct, delay: float = 0, error: Exception | None = None):
        self._products = {p.id: p for p in products}
        self._delay = delay
        self._error = error

    async def get_products(
        self, product_ids: set[ProductId],
    ) -> dict[ProductId, CatalogProduct]:
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return {pid: self._products[pid] for pid in product_ids if pid in self._products}


class FakeDiscounts:
    def __init__(self, *codes: DiscountCode):
        self._codes = {c.code: c for c in codes}

    async def get_by_code(self, normalized_code: str) -> DiscountCode | None:
        return self._codes.get(normalized_code)


def checkout_payload(token: str | None, items: list[dict], **overrides) -> dict:
    payload = {
        "items": items,
        "customer_email": "  Buyer@Example.NO ",
        "customer_name": "Kari Nordmann",
        "customer_phone": "912 34 567",
        "shipping_address": {
            "line1": "Storgata 1",
            "city": "Oslo",
            "postal_code": "0155",
            "country": "Norway",
        },
        "privacy_accepted": True,
    }
    if token is not None:
        payload["checkout_token"] = token
    payload.update(overrides)
    return payload
