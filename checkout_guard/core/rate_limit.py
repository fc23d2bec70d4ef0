"""Fixed-Window Rate Limiting — pure window evaluation, client IP resolution, response headers.

Invariants:
    - evaluate_window is PURE: the store has already incremented, this only interprets
    - count <= max_requests → allowed, remaining = max_requests - count
    - count > max_requests → denied, remaining = 0, reset derived from counter TTL
    - A TTL that is missing or non-positive falls back to a full window
    - get_client_ip never raises: returns "unknown" when no header is usable

Design Decisions:
    - Time injected as epoch milliseconds: deterministic tests, no wall clock in core
    - Named configs live here so every endpoint shares one source of truth
"""

import math
from dataclasses import dataclass
from typing import Mapping

UNKNOWN_CLIENT_IP = "unknown"
REAL_IP_HEADER = "x-real-ip"
FORWARDED_FOR_HEADER = "x-forwarded-for"
KEY_PREFIX = "ratelimit:"


@dataclass(frozen=True)
class RateLimitConfig:
    """Per-call-site limit. Immutable."""
    max_requests: int
    window_ms: int

    def __post_init__(self) -> None:
        if self.max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if self.window_ms <= 0:
            raise ValueError("window_ms must be positive")


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of one rate-limit check. reset_at is epoch milliseconds."""
    success: bool
    remaining: int
    reset_at: int


# ─── Named Limits ────────────────────────────────────────────────

# Only CHECKOUT_LIMIT and DISCOUNT_LOOKUP_LIMIT are mounted in this service.
# LOGIN, DATA_REQUEST and CONTACT are shared configs imported by the other
# storefront services so they count against the same window sizes.
CHECKOUT_LIMIT = RateLimitConfig(max_requests=5, window_ms=60_000)
LOGIN_LIMIT = RateLimitConfig(max_requests=5, window_ms=15 * 60_000)
DISCOUNT_LOOKUP_LIMIT = RateLimitConfig(max_requests=10, window_ms=60_000)
DATA_REQUEST_LIMIT = RateLimitConfig(max_requests=3, window_ms=60 * 60_000)
CONTACT_LIMIT = RateLimitConfig(max_requests=5, window_ms=60 * 60_000)


def storage_key(identifier: str) -> str:
    """Counter key for an identifier."""
    return f"{KEY_PREFIX}{identifier}"


def evaluate_window(
    count: int, ttl_ms: int | None, config: RateLimitConfig, now_ms: int,
) -> RateLimitResult:
    """Interpret a post-increment counter value against the config."""
    lifetime = ttl_ms if ttl_ms is not None and ttl_ms > 0 else config.window_ms
    reset_at = now_ms + lifetime
    if count <= config.max_requests:
        return RateLimitResult(
            success=True,
            remaining=config.max_requests - count,
            reset_at=reset_at,
        )
    return RateLimitResult(success=False, remaining=0, reset_at=reset_at)


def get_client_ip(headers: Mapping[str, str]) -> str:
    """Resolve the caller's IP from proxy headers.

    The single-value real-IP header is set by the edge proxy and wins.
    Otherwise the first hop of the forwarded chain is used.
    """
    real_ip = (headers.get(REAL_IP_HEADER) or "").strip()
    if real_ip:
        return real_ip
    forwarded = headers.get(FORWARDED_FOR_HEADER) or ""
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    return UNKNOWN_CLIENT_IP


def retry_after_seconds(result: RateLimitResult, now_ms: int) -> int:
    """Whole seconds until the window resets; at least 1."""
    return max(1, math.ceil((result.reset_at - now_ms) / 1000))


def get_rate_limit_headers(
    result: RateLimitResult, now_ms: int,
) -> dict[str, str]:
    """Visibility headers; Retry-After is added only on denial."""
    headers = {
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(math.ceil(result.reset_at / 1000)),
    }
    if not result.success:
        headers["Retry-After"] = str(retry_after_seconds(result, now_ms))
    return headers
