"""
Module: inventory_kernel.models.inventory_batch
Responsibility: ORM persistence for inventory batches.  Each batch is a
    discrete quantity of one product received at a fixed unit cost, forming
    the layers consumed by FIFO depletion.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - 0 <= quantity_available <= quantity_received (CHECK constraint).
    - quantity_received >= 1 and unit_cost >= 0 (CHECK constraints).
    - (product_id, sequence) is unique; sequence preserves insertion order
      and breaks ties between batches received at the same instant.
    - quantity_received, unit_cost, received_at and cause never change after
      creation; quantity_available only decreases (ORM listener in
      db/immutability.py).

Failure modes:
    - IntegrityError if a CHECK constraint is violated at flush.
    - ImmutabilityViolationError on forbidden updates or any delete.

Audit relevance:
    A batch is never deleted, even once fully depleted.  Together with the
    movement ledger it lets every unit on hand be traced to its receipt.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase, UUIDString
from inventory_kernel.domain.clock import ensure_utc
from inventory_kernel.domain.dtos import BatchLayer
from inventory_kernel.domain.movements import MovementCause


class InventoryBatch(TrackedBase):
    """
    Persistent storage for one inventory batch.

    Contract:
        Created by purchase receipt, initial stock entry or positive
        adjustment.  Mutated only by depletion, which lowers
        ``quantity_available``.  Never read-modified by valuation.

    Non-goals:
        - Does NOT store which sales consumed it; that lives on
          SaleLineConsumption rows.
    """

    __tablename__ = "inventory_batches"

    __table_args__ = (
        CheckConstraint(
            "quantity_received >= 1",
            name="ck_inventory_batches_received_positive",
        ),
        CheckConstraint(
            "quantity_available >= 0 AND quantity_available <= quantity_received",
            name="ck_inventory_batches_available_range",
        ),
        CheckConstraint(
            "unit_cost >= 0",
            name="ck_inventory_batches_cost_non_negative",
        ),
        UniqueConstraint("product_id", "sequence", name="uq_inventory_batches_sequence"),
        # FIFO layer scan
        Index("idx_inventory_batches_fifo", "product_id", "received_at", "sequence"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("products.id"), nullable=False,
    )
    quantity_received: Mapped[int] = mapped_column(nullable=False)
    quantity_available: Mapped[int] = mapped_column(nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(nullable=False)
    received_at: Mapped[datetime] = mapped_column(nullable=False)
    sequence: Mapped[int] = mapped_column(nullable=False)
    cause: Mapped[str] = mapped_column(String(20), nullable=False)
    purchase_line_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("purchase_lines.id"), nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<InventoryBatch {self.id} product={self.product_id} "
            f"{self.quantity_available}/{self.quantity_received} @ {self.unit_cost}>"
        )

    @property
    def cause_kind(self) -> MovementCause:
        return MovementCause(self.cause)

    def to_layer(self) -> BatchLayer:
        """Convert to the value object consumed by the FIFO planner."""
        return BatchLayer(
            batch_id=self.id,
            product_id=self.product_id,
            quantity_available=self.quantity_available,
            unit_cost=self.unit_cost,
            received_at=ensure_utc(self.received_at),
            sequence=self.sequence,
        )
