"""Checkout Schema — field validation at the checkout boundary.

Tests cover:
    - Normalization: email lowercased, phone spaces removed, discount code uppercased
    - Rejections: bad UUID, quantity bounds, postal code, privacy not accepted
    - Pricing fields from the client are accepted on the wire but never kept
"""

import uuid

import pytest

from checkout_guard.schemas.checkout import (
    CheckoutRequest, DiscountLookupRequest, parse_checkout_request,
)
from tests.services.fakes import checkout_payload

PRODUCT_ID = str(uuid.uuid4())


def _payload(**overrides) -> dict:
    return checkout_payload(
        None, [{"product_id": PRODUCT_ID, "quantity": 1}], **overrides,
    )


def _error_fields(payload) -> set[str]:
    result = parse_checkout_request(payload)
    assert not result.ok
    return {e.field for e in result.errors}


def test_valid_payload_normalized():
    result = parse_checkout_request(_payload(discount_code=" spring "))

    assert result.ok
    request = result.value
    assert request.customer_email == "buyer@example.no"
    assert request.customer_phone == "91234567"
    assert request.discount_code == "SPRING"
    assert request.locale == "no"


def test_line_records_carry_only_id_and_quantity():
    payload = _payload()
    payload["items"][0]["price"] = 1
    records = parse_checkout_request(payload).value.line_records()

    assert records[0].product_id == uuid.UUID(PRODUCT_ID)
    assert records[0].quantity == 1
    assert not hasattr(records[0], "price")


def test_client_pricing_fields_dropped():
    request = CheckoutRequest.model_validate(
        _payload(discount_amount=10, shipping_cost=0, artist_levy=0),
    )
    dumped = request.model_dump()
    for name in ("discount_amount", "shipping_cost", "artist_levy"):
        assert name not in dumped


def test_phone_with_country_code_accepted():
    assert parse_checkout_request(_payload(customer_phone="+47 912 34 567")).ok


@pytest.mark.parametrize("phone", ["12345678", "9123456", "+46 91234567"])
def test_invalid_phone_rejected(phone):
    assert "customer_phone" in _error_fields(_payload(customer_phone=phone))


def test_invalid_email_rejected():
    assert "customer_email" in _error_fields(_payload(customer_email="not-an-email"))


def test_privacy_must_be_accepted():
    assert "privacy_accepted" in _error_fields(_payload(privacy_accepted=False))


@pytest.mark.parametrize("quantity", [0, 101, "2", 1.5])
def test_quantity_bounds_and_type(quantity):
    payload = checkout_payload(None, [{"product_id": PRODUCT_ID, "quantity": quantity}])
    assert "items.0.quantity" in _error_fields(payload)


def test_non_v4_uuid_rejected():
    v1 = "6ba7b810-9dad-11d1-80b4-00c04fd430c8"
    payload = checkout_payload(None, [{"product_id": v1, "quantity": 1}])
    assert "items.0.product_id" in _error_fields(payload)


def test_empty_and_oversized_carts_rejected():
    assert "items" in _error_fields(checkout_payload(None, []))
    too_many = [{"product_id": PRODUCT_ID, "quantity": 1}] * 51
    assert "items" in _error_fields(checkout_payload(None, too_many))


def test_postal_code_must_be_four_digits():
    payload = _payload()
    payload["shipping_address"]["postal_code"] = "01550"
    assert "shipping_address.postal_code" in _error_fields(payload)


def test_non_object_payload_rejected():
    result = parse_checkout_request(["not", "a", "dict"])
    assert not result.ok
    assert result.errors


def test_discount_lookup_bounds():
    assert DiscountLookupRequest(code="X").subtotal == 0
    with pytest.raises(ValueError):
        DiscountLookupRequest(code="X", subtotal=-1)
