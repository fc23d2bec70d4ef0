"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Catalog and discount reads are read-only key lookups
    - CounterStore.increment_with_expiry is atomic per key and starts the TTL on the first hit

Design Decisions:
    - Protocol over ABC: structural subtyping, fakes in tests need no inheritance
    - Async in Protocol: implementations do IO; the pure rules that consume the
      results are never async themselves
"""

from typing import Protocol

from checkout_guard.core.domain_types import (
    CatalogProduct, DiscountCode, PaymentRequest, PaymentSession, ProductId,
)


class CatalogRepository(Protocol):
    """Contract for catalog reads — implemented by shell."""
    async def get_products(
        self, product_ids: set[ProductId],
    ) -> dict[ProductId, CatalogProduct]: ...


class DiscountRepository(Protocol):
    """Contract for discount reads — implemented by shell."""
    async def get_by_code(self, normalized_code: str) -> DiscountCode | None: ...


class CounterStore(Protocol):
    """Contract for fixed-window counters — Redis or in-process."""
    backend: str

    async def get(self, key: str) -> int | None: ...
    async def increment_with_expiry(self, key: str, window_ms: int) -> int: ...
    async def time_to_live(self, key: str) -> int | None: ...


class PaymentGateway(Protocol):
    """Contract for the payment provider — consumes a validated cart only."""
    async def create_session(self, request: PaymentRequest) -> PaymentSession: ...
