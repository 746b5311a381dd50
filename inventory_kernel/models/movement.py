"""
Module: inventory_kernel.models.movement
Responsibility: ORM persistence for the append-only stock movement ledger.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.

Invariants enforced:
    - quantity >= 1; direction is carried by movement_type (CHECK constraint).
    - movement_type is consistent with cause (validated on construction via
      MovementEntry; PURCHASE/INITIAL are IN, SALE is OUT).
    - cause_payload holds exactly the fields permitted for the cause.
    - Rows are never updated or deleted (ORM listener in db/immutability.py).
    - (product_id, sequence) is unique; sequence orders a product's ledger.

Audit relevance:
    For every product, sum(IN) - sum(OUT) over this table equals the stock
    held in its batches.  Movements outlive batch mutation, so history stays
    reportable after a batch is fully depleted.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase, UUIDString
from inventory_kernel.domain.movements import (
    CauseDetail,
    MovementCause,
    MovementEntry,
    MovementType,
    cause_from_payload,
    cause_to_payload,
)


class MovementRecord(TrackedBase):
    """
    One immutable stock movement.

    Contract:
        Created only through ``from_entry`` by the movement ledger service.
        Once INSERTed, no column may change.
    """

    __tablename__ = "inventory_movements"

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_inventory_movements_quantity_positive"),
        CheckConstraint(
            "movement_type IN ('in', 'out')",
            name="ck_inventory_movements_valid_type",
        ),
        CheckConstraint(
            "cause IN ('purchase', 'initial', 'adjustment', 'sale')",
            name="ck_inventory_movements_valid_cause",
        ),
        UniqueConstraint("product_id", "sequence", name="uq_inventory_movements_sequence"),
        Index("idx_inventory_movements_product", "product_id", "occurred_at"),
        Index("idx_inventory_movements_occurred_at", "occurred_at"),
        Index("idx_inventory_movements_reference", "cause", "cause_reference_id"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("products.id"), nullable=False,
    )
    movement_type: Mapped[str] = mapped_column(String(3), nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False)
    cause: Mapped[str] = mapped_column(String(20), nullable=False)
    cause_reference_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    cause_payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(nullable=False)
    sequence: Mapped[int] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return (
            f"<MovementRecord {self.id} {self.movement_type} {self.quantity} "
            f"cause={self.cause} product={self.product_id}>"
        )

    @classmethod
    def from_entry(cls, entry: MovementEntry, sequence: int) -> "MovementRecord":
        """Create the ORM row for a validated ledger entry."""
        return cls(
            product_id=entry.product_id,
            movement_type=entry.movement_type.value,
            quantity=entry.quantity,
            cause=entry.cause.value,
            cause_reference_id=entry.detail.reference_id,
            cause_payload=cause_to_payload(entry.detail),
            reason=entry.reason,
            occurred_at=entry.occurred_at,
            sequence=sequence,
        )

    @property
    def direction(self) -> MovementType:
        return MovementType(self.movement_type)

    @property
    def cause_kind(self) -> MovementCause:
        return MovementCause(self.cause)

    @property
    def detail(self) -> CauseDetail:
        return cause_from_payload(self.cause_kind, self.cause_payload)
