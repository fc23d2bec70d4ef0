"""Rate Limiter — fixed-window limiting with a shared primary store and a local fallback.

Invariants:
    - Shared store configured and healthy → globally consistent count across instances
    - Shared store missing, erroring or timing out → FAIL OPEN to the in-process store
    - Every fallback is logged at WARNING with the backend that failed
    - The decision itself is core.rate_limit.evaluate_window (pure)

Design Decisions:
    - Availability over strictness on store failure: a limiter outage must not take
      checkout down with it; the per-instance fallback still bounds abuse
    - Stores injected at construction (built once in the lifespan)
"""

import asyncio
import logging
import time
from typing import Callable

from redis.exceptions import RedisError

from checkout_guard.core.rate_limit import (
    RateLimitConfig, RateLimitResult, evaluate_window, storage_key,
)
from checkout_guard.core.repository_protocols import CounterStore

logger = logging.getLogger(__name__)


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


class RateLimiter:
    """Checks identifiers against fixed windows."""

    def __init__(
        self,
        fallback: CounterStore,
        primary: CounterStore | None = None,
        clock: Callable[[], int] = wall_clock_ms,
    ):
        self._primary = primary
        self._fallback = fallback
        self._clock = clock

    @property
    def degraded(self) -> bool:
        """True when no shared store is configured."""
        return self._primary is None

    async def check(
        self, identifier: str, config: RateLimitConfig,
    ) -> RateLimitResult:
        key = storage_key(identifier)
        if self._primary is not None:
            try:
                return await self._check_with(self._primary, key, config)
            except (RedisError, OSError, asyncio.TimeoutError) as e:
                logger.warning(
                    f"Shared rate-limit store failed, falling back to memory: {e}",
                    extra={"backend": self._primary.backend, "identifier": identifier},
                )
        return await self._check_with(self._fallback, key, config)

    async def _check_with(
        self, store: CounterStore, key: str, config: RateLimitConfig,
    ) -> RateLimitResult:
        count = await store.increment_with_expiry(key, config.window_ms)
        ttl_ms = await store.time_to_live(key)
        return evaluate_window(count, ttl_ms, config, self._clock())
