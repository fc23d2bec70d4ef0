"""Response Schemas — public-facing shapes for token, discount, and checkout endpoints.

Invariants:
    - Every amount is integer øre taken from a server-side computation
"""

from pydantic import BaseModel

from checkout_guard.core.domain_types import CartLine, ValidatedCart


class TokenResponse(BaseModel):
    token: str


class CartLineResponse(BaseModel):
    product_id: str
    title: str
    price: int
    quantity: int
    image_url: str | None = None
    artist_levy: int = 0

    @classmethod
    def from_line(cls, line: CartLine) -> "CartLineResponse":
        return cls(
            product_id=str(line.product_id),
            title=line.title,
            price=line.unit_price_minor,
            quantity=line.quantity,
            image_url=line.image_url,
            artist_levy=line.levy_minor,
        )


class TotalsResponse(BaseModel):
    subtotal: int
    discount_amount: int
    shipping_cost: int
    artist_levy: int
    total: int


class CheckoutResponse(BaseModel):
    reference: str
    redirect_url: str
    items: list[CartLineResponse]
    totals: TotalsResponse

    @classmethod
    def build(
        cls, reference: str, redirect_url: str, cart: ValidatedCart,
    ) -> "CheckoutResponse":
        totals = cart.totals
        return cls(
            reference=reference,
            redirect_url=redirect_url,
            items=[CartLineResponse.from_line(line) for line in cart.items],
            totals=TotalsResponse(
                subtotal=totals.subtotal_minor,
                discount_amount=totals.discount_minor,
                shipping_cost=totals.shipping_minor,
                artist_levy=totals.artist_levy_minor,
                total=totals.total_minor,
            ),
        )


class DiscountQuoteResponse(BaseModel):
    valid: bool = True
    code: str
    discount_percent: int | None = None
    discount_amount: int | None = None
    calculated_discount: int
