"""Checkout Token Service — binds the pure token functions to the server secret and clock.

Invariants:
    - issue() and verify() are pure functions of (secret, clock); no shared mutable state
    - verify() raises TokenInvalidError with the specific reason; the boundary
      renders one generic message regardless of reason
"""

import logging
from typing import Callable

from checkout_guard.core.checkout_token import issue_token, validate_token
from checkout_guard.core.errors import TokenInvalidError
from checkout_guard.services.rate_limiter import wall_clock_ms

logger = logging.getLogger(__name__)


class CheckoutTokenService:

    def __init__(self, secret: str, clock: Callable[[], int] = wall_clock_ms):
        if not secret:
            raise ValueError("checkout token secret must not be empty")
        self._secret = secret
        self._clock = clock

    def issue(self) -> str:
        return issue_token(self._secret, self._clock())

    def verify(self, token: str | None) -> None:
        result = validate_token(token, self._secret, self._clock())
        if not result.valid:
            logger.warning(
                "Checkout token rejected",
                extra={"reason": result.reason.value},
            )
            raise TokenInvalidError(result.reason)
