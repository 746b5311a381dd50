"""
Module: inventory_kernel.models.event
Responsibility: ORM persistence for exhibitions and pop-up events.
Architecture position: Kernel > Models.  May import from db/base.py only.

An event is a reporting view over the sales and expense transactions tagged
to it.  Its status (planned / active / completed) is derived from the clock
on every read and is deliberately not a column.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase


class Event(TrackedBase):
    __tablename__ = "events"

    __table_args__ = (
        CheckConstraint("ends_at >= starts_at", name="ck_events_window"),
        CheckConstraint("fixed_cost >= 0", name="ck_events_fixed_cost_non_negative"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    starts_at: Mapped[datetime] = mapped_column(nullable=False)
    ends_at: Mapped[datetime] = mapped_column(nullable=False)
    fixed_cost: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    def __repr__(self) -> str:
        return f"<Event {self.id} {self.name!r}>"
