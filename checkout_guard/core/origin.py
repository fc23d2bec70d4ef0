"""Origin Validation — allowlist check for state-changing requests.

Invariants:
    - Only POST/PUT/PATCH/DELETE are checked; every other method is allowed
    - Declared origin = Origin header, else scheme://host[:port] of the Referer
    - A declared origin is allowed only on exact allowlist membership
    - No declared origin: allowed for server-to-server callers, else only outside production
    - Decisions never carry the rejected origin value

Design Decisions:
    - Pure decision function over middleware: routes opt in per endpoint via dependency
    - Bearer secrets compared in constant time, same helper as checkout tokens
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping
from urllib.parse import urlsplit

from checkout_guard.core.checkout_token import constant_time_equals

STATE_CHANGING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
PAYMENT_SIGNATURE_HEADERS = ("stripe-signature",)


class OriginVerdict(str, Enum):
    ALLOW = "allow"
    REJECT = "reject"


@dataclass(frozen=True)
class OriginDecision:
    verdict: OriginVerdict
    rule: str

    @property
    def allowed(self) -> bool:
        return self.verdict is OriginVerdict.ALLOW


def extract_request_origin(headers: Mapping[str, str]) -> str | None:
    """Return the declared origin, or None when the caller declared none."""
    origin = (headers.get("origin") or "").strip()
    if origin:
        return origin
    referer = (headers.get("referer") or "").strip()
    if not referer:
        return None
    try:
        parts = urlsplit(referer)
    except ValueError:
        return referer
    if not parts.scheme or not parts.netloc:
        return referer
    return f"{parts.scheme}://{parts.netloc}"


def is_server_caller(
    headers: Mapping[str, str], server_secrets: Iterable[str],
) -> bool:
    """True for webhook or scheduled-job callers with a recognised credential."""
    if any(headers.get(name) for name in PAYMENT_SIGNATURE_HEADERS):
        return True
    authorization = headers.get("authorization") or ""
    if not authorization.startswith("Bearer "):
        return False
    presented = authorization[len("Bearer "):].strip()
    return any(
        secret and constant_time_equals(presented, secret)
        for secret in server_secrets
    )


def check_origin(
    method: str,
    headers: Mapping[str, str],
    allowed_origins: Iterable[str],
    server_secrets: Iterable[str] = (),
    is_production: bool = True,
) -> OriginDecision:
    """Decide whether a request may proceed."""
    if method.upper() not in STATE_CHANGING_METHODS:
        return OriginDecision(OriginVerdict.ALLOW, "safe_method")

    origin = extract_request_origin(headers)
    if origin is None:
        if is_server_caller(headers, server_secrets):
            return OriginDecision(OriginVerdict.ALLOW, "server_caller")
        if is_production:
            return OriginDecision(OriginVerdict.REJECT, "missing_origin")
        return OriginDecision(OriginVerdict.ALLOW, "missing_origin_dev")

    if origin in set(allowed_origins):
        return OriginDecision(OriginVerdict.ALLOW, "allowlisted")
    return OriginDecision(OriginVerdict.REJECT, "not_allowlisted")
