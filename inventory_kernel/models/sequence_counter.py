"""
Module: inventory_kernel.models.sequence_counter
Responsibility: Named counters backing monotonic sequence allocation
    (per-product batch and movement order, sale numbers).
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row represents a named sequence with its current value.
    Row-level locking ensures monotonicity under concurrency.
    """

    __tablename__ = "sequence_counters"

    # e.g. "sale_number", "batch:<product_id>", "movement:<product_id>"
    name: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    current_value: Mapped[int] = mapped_column(nullable=False, default=0)
