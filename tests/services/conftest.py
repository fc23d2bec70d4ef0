"""Service test fixtures — async DB, seeded catalog, fake payments, FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - Every test gets a fresh ServiceContainer (fresh in-memory rate-limit counters)
    - The payment provider is always the FakePaymentGateway (no network)

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (ADR: PostgreSQL-specific features not exercised here)
    - app.state.services set directly: ASGITransport does not run the lifespan
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

from checkout_guard.config import Settings
from checkout_guard.db.base import Base
from checkout_guard.infrastructure.database import DatabaseSessionManager
from checkout_guard.main import app
from checkout_guard.models.discount_code import DiscountCode as DiscountCodeModel
from checkout_guard.models.product import Product as ProductModel
from checkout_guard.services.container import build_container
from tests.services.fakes import FakePaymentGateway


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_db(test_engine):
    factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )
    async with factory() as session:
        yield session


@pytest.fixture
def payments():
    return FakePaymentGateway()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        environment="test",
        checkout_token_secret="test-checkout-token-secret",
        redis_url=None,
        server_api_secret="cron-secret",
    )


@pytest.fixture
def services(settings, test_engine, payments):
    return build_container(
        settings,
        db=DatabaseSessionManager.from_engine(test_engine),
        payments=payments,
    )


@pytest.fixture
async def client(services):
    """FastAPI test client bound to a per-test ServiceContainer."""
    app.state.services = services
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    del app.state.services


@pytest.fixture
async def catalog(test_db):
    """Seed the catalog: a print, a high-value original, an unavailable original."""
    rows = {
        "print": ProductModel(
            id=uuid.uuid4(), title="Harbour Print", price=49_900,
            product_type="print", stock_quantity=5, shipping_cost=9_900,
        ),
        "original": ProductModel(
            id=uuid.uuid4(), title="Fjord at Dusk", price=300_000,
            product_type="original", shipping_cost=29_900,
        ),
        "sold": ProductModel(
            id=uuid.uuid4(), title="Sold Study", price=120_000,
            product_type="original", is_available=False,
        ),
    }
    test_db.add_all(rows.values())
    test_db.add_all([
        DiscountCodeModel(code="SAVE10", discount_percent=10),
        DiscountCodeModel(code="FLAT500", discount_amount=50_000),
        DiscountCodeModel(code="OLD", discount_percent=20, is_active=False),
        DiscountCodeModel(
            code="LAPSED", discount_percent=20,
            expires_at=datetime.now(timezone.utc) - timedelta(days=1),
        ),
    ])
    await test_db.commit()
    return {name: str(row.id) for name, row in rows.items()}

