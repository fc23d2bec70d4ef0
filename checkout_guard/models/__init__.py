"""ORM Models — SQLAlchemy declarative models for the catalog tables.

Invariants:
    - All models inherit from Base (db/base.py)
    - Both tables are read-only from this service's perspective

Design Decisions:
    - One file per table for locality
"""

from checkout_guard.models.product import Product  # noqa: F401
from checkout_guard.models.discount_code import DiscountCode  # noqa: F401
