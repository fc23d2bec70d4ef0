"""Route Dependencies — container access, DB-bound repositories, origin and rate-limit guards.

Invariants:
    - Every collaborator comes from app.state.services (built in the lifespan)
    - Guard order on a route = order of its dependencies list: origin first, then rate limit
    - Rate-limit headers are set on both allowed and denied responses
"""

import logging
from typing import AsyncGenerator

from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from checkout_guard.core.errors import RateLimitedError
from checkout_guard.core.rate_limit import (
    RateLimitConfig, get_client_ip, get_rate_limit_headers, retry_after_seconds,
)
from checkout_guard.infrastructure.catalog_repository import (
    SqlCatalogRepository, SqlDiscountRepository,
)
from checkout_guard.services.container import ServiceContainer
from checkout_guard.services.rate_limiter import wall_clock_ms

logger = logging.getLogger(__name__)


def get_services(request: Request) -> ServiceContainer:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialized")
    return services


async def get_db(
    services: ServiceContainer = Depends(get_services),
) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    async with services.db.session() as session:
        yield session


def get_catalog(db: AsyncSession = Depends(get_db)) -> SqlCatalogRepository:
    return SqlCatalogRepository(db)


def get_discounts(db: AsyncSession = Depends(get_db)) -> SqlDiscountRepository:
    return SqlDiscountRepository(db)


def require_allowed_origin(
    request: Request, services: ServiceContainer = Depends(get_services),
) -> None:
    services.origin_guard.validate(request.method, request.headers)


def rate_limited(scope: str, config: RateLimitConfig, message: str | None = None):
    """Build a dependency limiting `scope` per client IP."""

    async def dependency(
        request: Request,
        response: Response,
        services: ServiceContainer = Depends(get_services),
    ) -> None:
        identifier = f"{scope}:{get_client_ip(request.headers)}"
        result = await services.rate_limiter.check(identifier, config)
        now_ms = wall_clock_ms()
        headers = get_rate_limit_headers(result, now_ms)
        if not result.success:
            logger.warning(
                "Rate limit exceeded", extra={"identifier": identifier},
            )
            kwargs = {"message": message} if message else {}
            raise RateLimitedError(
                headers, retry_after_seconds(result, now_ms), **kwargs,
            )
        response.headers.update(headers)

    return dependency
