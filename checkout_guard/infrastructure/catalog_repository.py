"""SQL Catalog Repositories — read-only lookups for products and discount codes.

Invariants:
    - Soft-deleted rows (deleted_at set) are never returned
    - ORM rows are converted to core records before leaving this module
    - Naive datetimes from the driver are treated as UTC

Design Decisions:
    - One repository per table, both bound to the caller's AsyncSession
"""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from checkout_guard.core.domain_types import (
    CatalogProduct, DiscountCode, ProductId, ProductType,
)
from checkout_guard.models.discount_code import DiscountCode as DiscountCodeModel
from checkout_guard.models.product import Product as ProductModel


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_catalog_product(row: ProductModel) -> CatalogProduct:
    return CatalogProduct(
        id=ProductId(row.id),
        title=row.title,
        price_minor=row.price,
        is_available=row.is_available,
        product_type=ProductType(row.product_type),
        stock_quantity=row.stock_quantity,
        image_url=row.image_url,
        shipping_cost_minor=row.shipping_cost,
    )


def _to_discount(row: DiscountCodeModel) -> DiscountCode:
    return DiscountCode(
        code=row.code,
        is_active=row.is_active,
        percent=row.discount_percent,
        amount_minor=row.discount_amount,
        expires_at=_as_utc(row.expires_at),
        uses_remaining=row.uses_remaining,
    )


class SqlCatalogRepository:
    """CatalogRepository over the products table."""

    def __init__(self, db: AsyncSession):
        self._db = db

    async def get_products(
        self, product_ids: set[ProductId],
    ) -> dict[ProductId, CatalogProduct]:
        if not product_ids:
            return {}
        result = await self._db.execute(
            select(ProductModel)
            .where(ProductModel.id.in_(list(product_ids)))
            .where(ProductModel.deleted_at.is_(None)),
        )
        return {
            ProductId(row.id): _to_catalog_product(row)
            for row in result.scalars().all()
        }


class SqlDiscountRepository:
    """DiscountRepository over the discount_codes table."""

    def __init__(self, db: AsyncSession):
        self._db = db

    async def get_by_code(self, normalized_code: str) -> DiscountCode | None:
        result = await self._db.execute(
            select(DiscountCodeModel)
            .where(DiscountCodeModel.code == normalized_code)
            .where(DiscountCodeModel.deleted_at.is_(None)),
        )
        row = result.scalar_one_or_none()
        return _to_discount(row) if row else None
