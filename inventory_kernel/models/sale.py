"""
Module: inventory_kernel.models.sale
Responsibility: ORM persistence for sales, sale lines and the per-batch
    consumption detail behind each line's captured unit cost.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - sale_number and sale sequence are unique.
    - SaleLine.unit_cost is captured at sale time from the batches consumed
      and never recomputed; SaleLine and SaleLineConsumption rows are never
      updated or deleted (ORM listener in db/immutability.py).
    - The consumptions of a line sum to the line quantity and their cost
      sums to unit_cost x quantity (up to cost rounding).

Audit relevance:
    Historical sale profit is stable: later purchases change future costs,
    never the unit cost stored on an existing line.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import TrackedBase, UUIDString


class Sale(TrackedBase):
    """A completed sale."""

    __tablename__ = "sales"

    sale_number: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    sequence: Mapped[int] = mapped_column(nullable=False, unique=True)
    event_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("events.id"), nullable=True, index=True,
    )
    customer_ref: Mapped[str | None] = mapped_column(String(100), nullable=True)
    account_ref: Mapped[str | None] = mapped_column(String(100), nullable=True)
    subtotal: Mapped[Decimal] = mapped_column(nullable=False)
    discount: Mapped[Decimal] = mapped_column(nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    tax: Mapped[Decimal] = mapped_column(nullable=False)
    shipping_cost: Mapped[Decimal] = mapped_column(nullable=False)
    total: Mapped[Decimal] = mapped_column(nullable=False)
    payment_method: Mapped[str] = mapped_column(String(30), nullable=False)
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    sold_at: Mapped[datetime] = mapped_column(nullable=False, index=True)

    lines: Mapped[list["SaleLine"]] = relationship(
        back_populates="sale",
        order_by="SaleLine.line_number",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Sale {self.sale_number} total={self.total}>"


class SaleLine(TrackedBase):
    """One product line of a sale, with its unit cost captured at sale time."""

    __tablename__ = "sale_lines"

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_sale_lines_quantity_positive"),
        CheckConstraint("unit_cost >= 0", name="ck_sale_lines_cost_non_negative"),
        CheckConstraint("cost_total >= 0", name="ck_sale_lines_cost_total_non_negative"),
    )

    sale_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("sales.id"), nullable=False, index=True,
    )
    product_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("products.id"), nullable=False, index=True,
    )
    line_number: Mapped[int] = mapped_column(nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)
    discount: Mapped[Decimal] = mapped_column(nullable=False)
    # FIFO average for display; cost_total is the exact sum over consumptions
    unit_cost: Mapped[Decimal] = mapped_column(nullable=False)
    cost_total: Mapped[Decimal] = mapped_column(nullable=False)
    line_total: Mapped[Decimal] = mapped_column(nullable=False)

    sale: Mapped[Sale] = relationship(back_populates="lines")
    consumptions: Mapped[list["SaleLineConsumption"]] = relationship(
        back_populates="sale_line",
        lazy="selectin",
    )

    @property
    def profit(self) -> Decimal:
        return self.line_total - self.unit_cost * self.quantity


class SaleLineConsumption(TrackedBase):
    """How many units of a sale line came from one batch, and at what cost."""

    __tablename__ = "sale_line_consumptions"

    __table_args__ = (
        CheckConstraint(
            "quantity_taken >= 1",
            name="ck_sale_line_consumptions_quantity_positive",
        ),
    )

    sale_line_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("sale_lines.id"), nullable=False, index=True,
    )
    batch_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("inventory_batches.id"), nullable=False, index=True,
    )
    quantity_taken: Mapped[int] = mapped_column(nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(nullable=False)

    sale_line: Mapped[SaleLine] = relationship(back_populates="consumptions")
