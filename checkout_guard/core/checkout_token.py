"""Checkout Token — signed proof that a client fetched a token before submitting checkout.

Invariants:
    - Format is "<issued_at_ms>.<hex HMAC-SHA256(secret, issued_at_ms)>"
    - Valid only if now - issued_at <= TOKEN_EXPIRY_MS and now - issued_at >= -CLOCK_SKEW_MS
    - Signature compared in constant time; length mismatch rejects before any byte compare
    - Pure functions of (token, secret, now_ms): no shared state, never persisted

Design Decisions:
    - Stateless HMAC over a stored nonce: no datastore round-trip per checkout
    - Rejection reason returned for logging; the boundary collapses it to one message
"""

import hashlib
import hmac
from dataclasses import dataclass

from checkout_guard.core.domain_types import TokenRejection

TOKEN_EXPIRY_MS: int = 30 * 60 * 1000
CLOCK_SKEW_MS: int = 60 * 1000
# Epoch milliseconds fit in 13 digits until the year 2286
MAX_TIMESTAMP_DIGITS: int = 15


@dataclass(frozen=True)
class TokenValidation:
    valid: bool
    reason: TokenRejection | None = None


def _sign(secret: str, timestamp: str) -> str:
    return hmac.new(
        secret.encode("utf-8"), timestamp.encode("utf-8"), hashlib.sha256,
    ).hexdigest()


def constant_time_equals(a: str, b: str) -> bool:
    """Compare two strings without leaking the first differing position."""
    if len(a) != len(b):
        return False
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def issue_token(secret: str, now_ms: int) -> str:
    """Issue a token stamped with now_ms."""
    timestamp = str(now_ms)
    return f"{timestamp}.{_sign(secret, timestamp)}"


def validate_token(
    token: str | None, secret: str, now_ms: int,
) -> TokenValidation:
    """Validate a token. Checks run cheapest first; signature last."""
    if not token:
        return TokenValidation(False, TokenRejection.MISSING)

    parts = token.split(".")
    if len(parts) != 2:
        return TokenValidation(False, TokenRejection.MALFORMED)
    timestamp, signature = parts

    if (
        len(timestamp) > MAX_TIMESTAMP_DIGITS
        or not timestamp.isascii()
        or not timestamp.isdigit()
    ):
        return TokenValidation(False, TokenRejection.MALFORMED)
    issued_at = int(timestamp)

    age = now_ms - issued_at
    if age > TOKEN_EXPIRY_MS:
        return TokenValidation(False, TokenRejection.EXPIRED)
    if age < -CLOCK_SKEW_MS:
        return TokenValidation(False, TokenRejection.FUTURE_DATED)

    if not constant_time_equals(signature, _sign(secret, timestamp)):
        return TokenValidation(False, TokenRejection.SIGNATURE_MISMATCH)

    return TokenValidation(True)
