"""Product ORM — the catalog table this service reads prices and stock from.

Invariants:
    - price is non-negative integer øre
    - stock_quantity is NULL for unlimited items (originals are one-offs, flagged via is_available)
    - deleted_at set means soft-deleted: never visible to checkout

Design Decisions:
    - Table owned by the catalog collaborator; this service only SELECTs from it
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import Uuid

from checkout_guard.db.base import Base


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    is_available: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True,
    )
    stock_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    product_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="original",
    )
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    shipping_cost: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
