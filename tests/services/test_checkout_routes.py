"""Checkout Routes — end-to-end guard chain over the FastAPI app.

Invariants:
    - GET /checkout/token issues "<ms>.<64 hex>" tokens
    - POST /checkout runs origin → rate limit → token → schema → cart → payment
    - The payment provider only ever receives the server-computed total
    - Client-sent price, discount_amount, shipping_cost and artist_levy are ignored

Design Decisions:
    - Rate-limit tests send requests that fail at the token step: the limiter
      counts every attempt that passed the origin check, valid or not
"""

import logging
import re
import uuid

from checkout_guard.core.errors import PaymentProviderError
from tests.services.fakes import ALLOWED_ORIGIN, checkout_payload

HEADERS = {"origin": ALLOWED_ORIGIN, "x-real-ip": "203.0.113.7"}


async def _token(client) -> str:
    res = await client.get("/api/v1/checkout/token")
    assert res.status_code == 200
    return res.json()["token"]


# ─── Token Endpoint ─────────────────────────────────────────────

async def test_token_endpoint_issues_signed_token(client):
    token = await _token(client)
    assert re.fullmatch(r"\d+\.[0-9a-f]{64}", token)


async def test_token_endpoint_is_not_origin_guarded(client):
    res = await client.get(
        "/api/v1/checkout/token", headers={"origin": "https://evil.example"},
    )
    assert res.status_code == 200


# ─── Happy Path ─────────────────────────────────────────────────

async def test_checkout_uses_catalog_price_not_client_price(
    client, catalog, payments,
):
    token = await _token(client)
    payload = checkout_payload(
        token,
        [{"product_id": catalog["print"], "quantity": 2, "price": 1}],
        discount_amount=99_999_999,
        shipping_cost=0,
        artist_levy=0,
    )

    res = await client.post("/api/v1/checkout", json=payload, headers=HEADERS)

    assert res.status_code == 201
    body = res.json()
    assert body["items"][0]["price"] == 49_900
    assert body["totals"] == {
        "subtotal": 99_800,
        "discount_amount": 0,
        "shipping_cost": 9_900,
        "artist_levy": 0,
        "total": 109_700,
    }
    assert payments.requests[0].amount_minor == 109_700


async def test_checkout_returns_reference_and_redirect(client, catalog, payments):
    token = await _token(client)
    payload = checkout_payload(
        token, [{"product_id": catalog["print"], "quantity": 1}],
    )

    res = await client.post("/api/v1/checkout", json=payload, headers=HEADERS)

    body = res.json()
    assert re.fullmatch(r"ORD-\d+-[A-Z0-9]{6}", body["reference"])
    assert body["redirect_url"].endswith(body["reference"])
    request = payments.requests[0]
    assert request.customer_email == "buyer@example.no"
    assert request.customer_phone == "91234567"
    assert f"reference={body['reference']}" in request.return_url


async def test_checkout_computes_artist_levy_server_side(client, catalog, payments):
    token = await _token(client)
    payload = checkout_payload(
        token,
        [{"product_id": catalog["original"], "quantity": 1}],
        artist_levy=0,
    )

    res = await client.post("/api/v1/checkout", json=payload, headers=HEADERS)

    totals = res.json()["totals"]
    assert totals["artist_levy"] == 15_000
    assert totals["total"] == 300_000 + 29_900 + 15_000
    assert payments.requests[0].amount_minor == totals["total"]


async def test_checkout_applies_percent_discount(client, catalog):
    token = await _token(client)
    payload = checkout_payload(
        token,
        [{"product_id": catalog["print"], "quantity": 2}],
        discount_code=" save10 ",
    )

    res = await client.post("/api/v1/checkout", json=payload, headers=HEADERS)

    totals = res.json()["totals"]
    assert totals["discount_amount"] == 9_980
    assert totals["total"] == 99_800 - 9_980 + 9_900


# ─── Origin Guard ───────────────────────────────────────────────

async def test_foreign_origin_rejected_even_with_valid_token(
    client, catalog, payments,
):
    token = await _token(client)
    payload = checkout_payload(
        token, [{"product_id": catalog["print"], "quantity": 1}],
    )

    res = await client.post(
        "/api/v1/checkout", json=payload,
        headers={"origin": "https://evil.example"},
    )

    assert res.status_code == 403
    assert res.json()["error"]["code"] == "INVALID_ORIGIN"
    assert "evil" not in res.text
    assert payments.requests == []


async def test_referer_from_allowed_origin_accepted(client, catalog):
    token = await _token(client)
    payload = checkout_payload(
        token, [{"product_id": catalog["print"], "quantity": 1}],
    )

    res = await client.post(
        "/api/v1/checkout", json=payload,
        headers={"referer": f"{ALLOWED_ORIGIN}/checkout?step=2"},
    )

    assert res.status_code == 201


# ─── Rate Limiter ───────────────────────────────────────────────

async def test_sixth_attempt_within_a_minute_is_rate_limited(client):
    for _ in range(5):
        res = await client.post(
            "/api/v1/checkout", json={"items": []}, headers=HEADERS,
        )
        assert res.status_code == 403

    res = await client.post(
        "/api/v1/checkout", json={"items": []}, headers=HEADERS,
    )

    assert res.status_code == 429
    assert int(res.headers["retry-after"]) >= 1
    assert res.headers["x-ratelimit-remaining"] == "0"
    assert res.json()["error"]["code"] == "RATE_LIMITED"


async def test_rate_limit_is_per_client_ip(client):
    for _ in range(6):
        await client.post("/api/v1/checkout", json={}, headers=HEADERS)

    res = await client.post(
        "/api/v1/checkout", json={},
        headers={"origin": ALLOWED_ORIGIN, "x-real-ip": "198.51.100.1"},
    )

    assert res.status_code == 403


async def test_rate_limit_headers_on_allowed_request(client, catalog):
    token = await _token(client)
    payload = checkout_payload(
        token, [{"product_id": catalog["print"], "quantity": 1}],
    )

    res = await client.post("/api/v1/checkout", json=payload, headers=HEADERS)

    assert res.headers["x-ratelimit-remaining"] == "4"
    assert "retry-after" not in res.headers


# ─── Checkout Token ─────────────────────────────────────────────

async def test_missing_token_rejected_before_schema(client, payments):
    res = await client.post(
        "/api/v1/checkout", json={"nonsense": True}, headers=HEADERS,
    )

    assert res.status_code == 403
    error = res.json()["error"]
    assert error["code"] == "INVALID_CHECKOUT_TOKEN"
    assert "details" not in error
    assert payments.requests == []


async def test_forged_token_rejected(client, catalog):
    token = await _token(client)
    timestamp, signature = token.split(".")
    forged = f"{timestamp}.{'0' * len(signature)}"
    payload = checkout_payload(
        forged, [{"product_id": catalog["print"], "quantity": 1}],
    )

    res = await client.post("/api/v1/checkout", json=payload, headers=HEADERS)

    assert res.status_code == 403
    assert res.json()["error"]["code"] == "INVALID_CHECKOUT_TOKEN"


async def test_oversized_token_timestamp_rejected(client, catalog, payments):
    payload = checkout_payload(
        "9" * 5000 + ".deadbeef",
        [{"product_id": catalog["print"], "quantity": 1}],
    )

    res = await client.post("/api/v1/checkout", json=payload, headers=HEADERS)

    assert res.status_code == 403
    assert res.json()["error"]["code"] == "INVALID_CHECKOUT_TOKEN"
    assert payments.requests == []


# ─── Schema & Cart ──────────────────────────────────────────────

async def test_invalid_payload_returns_field_errors(client):
    token = await _token(client)
    payload = checkout_payload(
        token,
        [{"product_id": "not-a-uuid", "quantity": 0}],
        privacy_accepted=False,
    )

    res = await client.post("/api/v1/checkout", json=payload, headers=HEADERS)

    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    fields = {d["field"] for d in error["details"]}
    assert "items.0.product_id" in fields
    assert "items.0.quantity" in fields
    assert "privacy_accepted" in fields


async def test_unavailable_product_rejects_whole_cart(client, catalog, payments):
    token = await _token(client)
    payload = checkout_payload(token, [
        {"product_id": catalog["print"], "quantity": 1},
        {"product_id": catalog["sold"], "quantity": 1},
    ])

    res = await client.post("/api/v1/checkout", json=payload, headers=HEADERS)

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "UNAVAILABLE"
    assert payments.requests == []


async def test_unknown_product_rejected(client, catalog):
    token = await _token(client)
    payload = checkout_payload(
        token, [{"product_id": str(uuid.uuid4()), "quantity": 1}],
    )

    res = await client.post("/api/v1/checkout", json=payload, headers=HEADERS)

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "PRODUCT_NOT_FOUND"


async def test_print_stock_enforced(client, catalog):
    token = await _token(client)
    payload = checkout_payload(
        token, [{"product_id": catalog["print"], "quantity": 6}],
    )

    res = await client.post("/api/v1/checkout", json=payload, headers=HEADERS)

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INSUFFICIENT_STOCK"


async def test_print_split_across_lines_rejected(client, catalog, payments):
    token = await _token(client)
    payload = checkout_payload(token, [
        {"product_id": catalog["print"], "quantity": 5},
        {"product_id": catalog["print"], "quantity": 5},
    ])

    res = await client.post("/api/v1/checkout", json=payload, headers=HEADERS)

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "PRODUCT_NOT_FOUND"
    assert payments.requests == []


async def test_inactive_discount_rejects_checkout(client, catalog):
    token = await _token(client)
    payload = checkout_payload(
        token,
        [{"product_id": catalog["print"], "quantity": 1}],
        discount_code="OLD",
    )

    res = await client.post("/api/v1/checkout", json=payload, headers=HEADERS)

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "DISCOUNT_INACTIVE"


# ─── Payment Provider ───────────────────────────────────────────

async def test_provider_failure_detail_logged_not_returned(
    client, catalog, payments, caplog,
):
    payments.error = PaymentProviderError("status 422: amount.currency unsupported")
    token = await _token(client)
    payload = checkout_payload(
        token, [{"product_id": catalog["print"], "quantity": 1}],
    )

    with caplog.at_level(logging.ERROR, logger="checkout_guard"):
        res = await client.post("/api/v1/checkout", json=payload, headers=HEADERS)

    assert res.status_code == 502
    assert res.json()["error"]["code"] == "PAYMENT_PROVIDER_ERROR"
    assert "amount.currency" not in res.text
    records = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert any("amount.currency unsupported" in r.getMessage() for r in records)
    assert any(
        getattr(r, "detail", None) == "status 422: amount.currency unsupported"
        for r in records
    )


# ─── Request Correlation ────────────────────────────────────────

async def test_request_id_echoed(client):
    res = await client.get(
        "/api/v1/checkout/token", headers={"x-request-id": "abc-123"},
    )
    assert res.headers["x-request-id"] == "abc-123"


async def test_request_id_generated_when_absent(client):
    res = await client.get("/api/v1/checkout/token")
    assert re.fullmatch(r"\d+-[0-9a-f]{8}", res.headers["x-request-id"])
