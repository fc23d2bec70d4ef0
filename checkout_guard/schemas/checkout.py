"""Checkout Schemas — Pydantic models with field-level validation for the checkout boundary.

Invariants:
    - items: 1-50 lines; product_id UUID-v4 shaped; quantity 1-100
    - customer_email lowercased and trimmed, RFC-shaped, ≤254 chars
    - customer_phone spaces stripped, then 8 Norwegian digits with optional +47
    - postal_code exactly 4 digits; privacy_accepted must be true
    - discount_code trimmed + uppercased, blank → None
    - Client price, discount_amount, shipping_cost, artist_levy are never read

Design Decisions:
    - Pricing fields dropped from the wire contract; extra="ignore" keeps old
      clients that still send them working without trusting them
    - parse_checkout_request returns a tagged result with structured field errors
      instead of raising, so the route controls when validation runs
"""

import re
from dataclasses import dataclass, field
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from checkout_guard.core.domain_types import CartLineRequest as CartLineRecord, ProductId

UUID_V4_PATTERN = (
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-4[0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}$"
)
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^(\+47)?[2-9]\d{7}$")


class CartLineRequest(BaseModel):
    """One requested cart line. price/title/image_url are advisory and ignored."""
    model_config = ConfigDict(extra="ignore")

    product_id: str = Field(pattern=UUID_V4_PATTERN)
    quantity: int = Field(ge=1, le=100, strict=True)
    price: int | None = Field(None, ge=0)
    title: str | None = Field(None, max_length=200)
    image_url: str | None = None

    def to_record(self) -> CartLineRecord:
        return CartLineRecord(
            product_id=ProductId(UUID(self.product_id)), quantity=self.quantity,
        )


class ShippingAddress(BaseModel):
    line1: str = Field(min_length=1, max_length=200)
    line2: str | None = Field(None, max_length=200)
    city: str = Field(min_length=1, max_length=100)
    postal_code: str = Field(pattern=r"^\d{4}$")
    country: str = Field(min_length=1, max_length=100)


class CheckoutRequest(BaseModel):
    """Checkout submission. Totals are always recomputed server-side."""
    model_config = ConfigDict(extra="ignore")

    items: list[CartLineRequest] = Field(min_length=1, max_length=50)
    customer_email: str = Field(min_length=1)
    customer_name: str = Field(min_length=1, max_length=200)
    customer_phone: str = Field(min_length=1)
    shipping_address: ShippingAddress
    discount_code: str | None = Field(None, max_length=50)
    privacy_accepted: bool
    newsletter_opt_in: bool = False
    locale: Literal["no", "en"] = "no"
    checkout_token: str | None = None

    @field_validator("customer_email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if len(v) > 254:
            raise ValueError("Email too long")
        if not EMAIL_RE.match(v):
            raise ValueError("Invalid email format")
        return v

    @field_validator("customer_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("customer_phone")
    @classmethod
    def normalize_phone(cls, v: str) -> str:
        v = re.sub(r"\s", "", v)
        if not PHONE_RE.match(v):
            raise ValueError(
                "Invalid phone number (must be 8 digits, optionally with +47)",
            )
        return v

    @field_validator("discount_code")
    @classmethod
    def normalize_discount_code(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip().upper() or None

    @field_validator("privacy_accepted")
    @classmethod
    def require_privacy(cls, v: bool) -> bool:
        if v is not True:
            raise ValueError("Privacy policy must be accepted")
        return v

    def line_records(self) -> list[CartLineRecord]:
        return [item.to_record() for item in self.items]


class DiscountLookupRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    subtotal: int = Field(0, ge=0)


# ─── Tagged parse result ─────────────────────────────────────────

@dataclass(frozen=True)
class FieldError:
    field: str
    message: str
    type: str

    def as_dict(self) -> dict:
        return {"field": self.field, "message": self.message, "type": self.type}


@dataclass(frozen=True)
class SchemaResult:
    ok: bool
    value: CheckoutRequest | None = None
    errors: list[FieldError] = field(default_factory=list)


def field_errors(exc: ValidationError) -> list[FieldError]:
    return [
        FieldError(
            field=".".join(str(loc) for loc in e["loc"]),
            message=e["msg"],
            type=e["type"],
        )
        for e in exc.errors()
    ]


def parse_checkout_request(payload: object) -> SchemaResult:
    """Validate a raw JSON payload into a CheckoutRequest."""
    try:
        return SchemaResult(ok=True, value=CheckoutRequest.model_validate(payload))
    except ValidationError as e:
        return SchemaResult(ok=False, errors=field_errors(e))
