"""
Module: inventory_kernel.models.purchase
Responsibility: ORM persistence for supplier purchases and their lines.
Architecture position: Kernel > Models.  May import from db/base.py only.

Each purchase line stores the source-currency cost it was bought at, its
share of freight per unit and the landed unit cost that its batch was
created with.  Exactly one batch references each line.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import TrackedBase, UUIDString


class Purchase(TrackedBase):
    """A supplier purchase event."""

    __tablename__ = "purchases"

    __table_args__ = (
        CheckConstraint("exchange_rate > 0", name="ck_purchases_rate_positive"),
        CheckConstraint("freight_total >= 0", name="ck_purchases_freight_non_negative"),
    )

    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    exchange_rate: Mapped[Decimal] = mapped_column(Numeric(38, 18), nullable=False)
    freight_total: Mapped[Decimal] = mapped_column(nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(nullable=False)
    total: Mapped[Decimal] = mapped_column(nullable=False)
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    purchased_at: Mapped[datetime] = mapped_column(nullable=False)

    lines: Mapped[list["PurchaseLine"]] = relationship(
        back_populates="purchase",
        order_by="PurchaseLine.line_number",
        lazy="selectin",
    )


class PurchaseLine(TrackedBase):
    """One product line of a purchase."""

    __tablename__ = "purchase_lines"

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_purchase_lines_quantity_positive"),
    )

    purchase_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("purchases.id"), nullable=False, index=True,
    )
    product_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("products.id"), nullable=False,
    )
    line_number: Mapped[int] = mapped_column(nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False)
    unit_cost_source: Mapped[Decimal] = mapped_column(nullable=False)
    freight_per_unit: Mapped[Decimal] = mapped_column(nullable=False)
    landed_unit_cost: Mapped[Decimal] = mapped_column(nullable=False)
    line_total: Mapped[Decimal] = mapped_column(nullable=False)

    purchase: Mapped[Purchase] = relationship(back_populates="lines")
