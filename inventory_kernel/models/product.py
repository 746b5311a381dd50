"""
Module: inventory_kernel.models.product
Responsibility: ORM persistence for catalog products.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - SKU is unique when present (UNIQUE constraint).
    - Products are soft-deleted through ``is_active``; batches and movements
      keep referencing them forever.
"""

from decimal import Decimal

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase


class Product(TrackedBase):
    """A sellable product that owns zero or more inventory batches."""

    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    price: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    sku: Mapped[str | None] = mapped_column(String(100), nullable=True, unique=True)
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Product {self.id} {self.name!r} active={self.is_active}>"
