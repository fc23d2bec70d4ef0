"""Service Container — explicit construction and lifecycle of every request-path collaborator.

Invariants:
    - Built once per process in the FastAPI lifespan; handlers receive it via dependency
    - The in-memory counter store always exists (fallback); Redis only when configured
    - start() launches the sweeper; close() cancels it and closes every client

Design Decisions:
    - Dataclass container over module singletons: tests swap fields directly
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field

from checkout_guard.config import Settings
from checkout_guard.infrastructure.database import DatabaseSessionManager
from checkout_guard.infrastructure.memory_counter_store import (
    InMemoryCounterStore, run_sweeper,
)
from checkout_guard.infrastructure.payment_client import HttpPaymentGateway
from checkout_guard.infrastructure.redis_counter_store import RedisCounterStore
from checkout_guard.core.repository_protocols import PaymentGateway
from checkout_guard.services.cart_validator import CartValidator
from checkout_guard.services.checkout_service import CheckoutService
from checkout_guard.services.checkout_tokens import CheckoutTokenService
from checkout_guard.services.origin_guard import OriginGuard
from checkout_guard.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    db: DatabaseSessionManager
    memory_store: InMemoryCounterStore
    redis_store: RedisCounterStore | None
    rate_limiter: RateLimiter
    origin_guard: OriginGuard
    tokens: CheckoutTokenService
    cart_validator: CartValidator
    payments: PaymentGateway
    checkout: CheckoutService
    _sweeper: asyncio.Task | None = field(default=None, repr=False)

    def start(self) -> None:
        if self._sweeper is None:
            self._sweeper = asyncio.create_task(run_sweeper(
                self.memory_store,
                self.settings.rate_limit_sweep_interval_seconds,
            ))

    async def close(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweeper
            self._sweeper = None
        if self.redis_store is not None:
            await self.redis_store.close()
        close_payments = getattr(self.payments, "close", None)
        if close_payments is not None:
            await close_payments()
        await self.db.dispose()


def build_container(
    settings: Settings,
    db: DatabaseSessionManager | None = None,
    payments: PaymentGateway | None = None,
) -> ServiceContainer:
    """Wire every collaborator from settings. db/payments may be injected."""
    if settings.uses_insecure_token_secret:
        logger.warning(
            "CHECKOUT_TOKEN_SECRET not set. Using the development fallback secret; "
            "set CHECKOUT_TOKEN_SECRET before deploying to production.",
        )

    memory_store = InMemoryCounterStore()
    redis_store = None
    if settings.redis_url:
        redis_store = RedisCounterStore.from_url(
            settings.redis_url, timeout_ms=settings.redis_timeout_ms,
        )
    else:
        logger.warning(
            "REDIS_URL not set: rate limits are per-instance only",
            extra={"backend": memory_store.backend},
        )

    db = db or DatabaseSessionManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    payments = payments or HttpPaymentGateway(
        settings.payment_api_url,
        settings.payment_api_key,
        timeout_seconds=settings.payment_timeout_seconds,
    )
    tokens = CheckoutTokenService(settings.token_secret)
    validator = CartValidator(timeout_ms=settings.store_timeout_ms)

    return ServiceContainer(
        settings=settings,
        db=db,
        memory_store=memory_store,
        redis_store=redis_store,
        rate_limiter=RateLimiter(fallback=memory_store, primary=redis_store),
        origin_guard=OriginGuard(
            settings.allowed_origins,
            server_secrets=settings.server_secrets,
            is_production=settings.is_production,
        ),
        tokens=tokens,
        cart_validator=validator,
        payments=payments,
        checkout=CheckoutService(
            tokens, validator, payments, settings.payment_return_url,
        ),
    )
