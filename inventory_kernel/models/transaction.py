"""
Module: inventory_kernel.models.transaction
Responsibility: ORM persistence for income and expense transactions.
Architecture position: Kernel > Models.  May import from db/base.py only.

Purchases record an EXPENSE, sales an INCOME, and standalone event costs
an EXPENSE tagged with reference_type EVENT.  This is a cash record, not a
double-entry ledger.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import CheckConstraint, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase, UUIDString


class TransactionKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class ReferenceType(str, Enum):
    PURCHASE = "purchase"
    SALE = "sale"
    EVENT = "event"


class Transaction(TrackedBase):
    __tablename__ = "transactions"

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_transactions_amount_non_negative"),
        CheckConstraint(
            "kind IN ('income', 'expense')",
            name="ck_transactions_valid_kind",
        ),
        Index("idx_transactions_reference", "reference_type", "reference_id"),
    )

    kind: Mapped[str] = mapped_column(String(10), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    reference_type: Mapped[str] = mapped_column(String(20), nullable=False)
    reference_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<Transaction {self.kind} {self.amount} {self.reference_type}>"
