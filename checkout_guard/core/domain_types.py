"""Domain Types — value objects and enums shared by the checkout boundary.

Invariants:
    - All monetary values are non-negative ints in minor currency units (øre)
    - CartLine.unit_price_minor is always the catalog price, never a client value
    - All rejection reasons encoded as Enums — no raw string matching

Design Decisions:
    - Frozen dataclasses over dicts: records crossing the core boundary are immutable
    - str Enums: serialize to JSON without custom encoders
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

ProductId = NewType("ProductId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class Environment(str, Enum):
    """Deployment environment — controls secret fallback and origin looseness."""
    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


class ProductType(str, Enum):
    """Catalog product kinds. Only prints carry a finite stock count."""
    ORIGINAL = "original"
    PRINT = "print"


class TokenRejection(str, Enum):
    """Why a checkout token was refused. Logged only, never returned."""
    MISSING = "missing"
    MALFORMED = "malformed"
    EXPIRED = "expired"
    FUTURE_DATED = "future_dated"
    SIGNATURE_MISMATCH = "signature_mismatch"


class CartRejection(str, Enum):
    """Why a cart failed authoritative re-validation. Returned to the client."""
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    UNAVAILABLE = "UNAVAILABLE"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    DISCOUNT_NOT_FOUND = "DISCOUNT_NOT_FOUND"
    DISCOUNT_INACTIVE = "DISCOUNT_INACTIVE"
    DISCOUNT_EXPIRED = "DISCOUNT_EXPIRED"
    DISCOUNT_EXHAUSTED = "DISCOUNT_EXHAUSTED"


# ─── Records ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class CartLineRequest:
    """A client-requested line. Only product_id and quantity are ever read."""
    product_id: ProductId
    quantity: int


@dataclass(frozen=True)
class CatalogProduct:
    """Authoritative product record owned by the catalog store."""
    id: ProductId
    title: str
    price_minor: int
    is_available: bool
    product_type: ProductType
    stock_quantity: int | None = None
    image_url: str | None = None
    shipping_cost_minor: int | None = None


@dataclass(frozen=True)
class DiscountCode:
    """Discount record. When both percent and amount are set, percent wins."""
    code: str
    is_active: bool
    percent: int | None = None
    amount_minor: int | None = None
    expires_at: datetime | None = None
    uses_remaining: int | None = None


@dataclass(frozen=True)
class CartLine:
    """A validated line rebuilt from the catalog record."""
    product_id: ProductId
    title: str
    unit_price_minor: int
    quantity: int
    image_url: str | None = None
    levy_minor: int = 0

    @property
    def line_total_minor(self) -> int:
        return self.unit_price_minor * self.quantity


@dataclass(frozen=True)
class CartTotals:
    """Server-computed totals. Discount applies to the subtotal only."""
    subtotal_minor: int
    discount_minor: int
    shipping_minor: int
    artist_levy_minor: int
    total_minor: int


@dataclass(frozen=True)
class ValidatedCart:
    """A cart whose every price came from the catalog."""
    items: tuple[CartLine, ...]
    discount_amount_minor: int
    artist_levy_minor: int
    totals: CartTotals
    discount_code: str | None = None

    @property
    def levy_lines(self) -> tuple[CartLine, ...]:
        """Lines that carry an artist levy."""
        return tuple(line for line in self.items if line.levy_minor > 0)


@dataclass(frozen=True)
class PaymentRequest:
    """What the payment collaborator receives: a reference and server totals."""
    reference: str
    amount_minor: int
    description: str
    customer_email: str
    customer_phone: str
    return_url: str
    locale: str = "no"


@dataclass(frozen=True)
class PaymentSession:
    session_id: str
    redirect_url: str
