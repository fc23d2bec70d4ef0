"""Redis Counter Store — shared fixed-window counters with native key expiry.

Invariants:
    - INCR and PTTL run in one MULTI/EXEC: the count and its TTL are read atomically
    - The TTL is set when the counter is created, and repaired if a key ever lacks one
    - Every call is bounded by timeout_ms; timeouts surface as TimeoutError
    - Redis and connection errors propagate: the RateLimiter owns the fail-open policy

Design Decisions:
    - redis.asyncio over a sync client: no thread pool hop on the request path
    - PEXPIRE in milliseconds so sub-second windows keep their precision
"""

import asyncio
import logging

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class RedisCounterStore:
    """CounterStore backed by a shared Redis instance."""

    backend = "redis"

    def __init__(self, client: redis.Redis, timeout_ms: int = 250):
        self._client = client
        self._timeout = timeout_ms / 1000

    @classmethod
    def from_url(cls, url: str, timeout_ms: int = 250) -> "RedisCounterStore":
        client = redis.Redis.from_url(
            url,
            socket_timeout=timeout_ms / 1000,
            socket_connect_timeout=timeout_ms / 1000,
            decode_responses=True,
        )
        return cls(client, timeout_ms=timeout_ms)

    async def get(self, key: str) -> int | None:
        value = await asyncio.wait_for(self._client.get(key), self._timeout)
        return int(value) if value is not None else None

    async def increment_with_expiry(self, key: str, window_ms: int) -> int:
        return await asyncio.wait_for(
            self._increment(key, window_ms), self._timeout,
        )

    async def _increment(self, key: str, window_ms: int) -> int:
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.incr(key)
            pipe.pttl(key)
            count, ttl = await pipe.execute()
        # PTTL -1: key exists without expiry (first hit, or a lost PEXPIRE)
        if count == 1 or ttl == -1:
            await self._client.pexpire(key, window_ms)
        return int(count)

    async def time_to_live(self, key: str) -> int | None:
        ttl = await asyncio.wait_for(self._client.pttl(key), self._timeout)
        return int(ttl) if ttl is not None and ttl > 0 else None

    async def ping(self) -> bool:
        try:
            return bool(await asyncio.wait_for(self._client.ping(), self._timeout))
        except (redis.RedisError, OSError, asyncio.TimeoutError) as e:
            logger.warning(f"Redis ping failed: {e}", extra={"backend": self.backend})
            return False

    async def close(self) -> None:
        await self._client.aclose()
