"""
Module: inventory_kernel.selectors.movement_selector
Responsibility: Read-only queries over the movement ledger and the purchase
    and sale lines that movements point at.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Ledger totals are summed from movement rows at query time.
    - Window queries are half-open: start <= occurred_at < end.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import case, extract, func, select

from inventory_kernel.domain.clock import ensure_utc
from inventory_kernel.domain.dtos import MovementPeriod
from inventory_kernel.domain.movements import MovementType
from inventory_kernel.models.movement import MovementRecord
from inventory_kernel.models.product import Product
from inventory_kernel.models.purchase import PurchaseLine
from inventory_kernel.models.sale import Sale, SaleLine
from inventory_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class LedgerRow:
    """A movement row joined with its product name."""

    movement_id: UUID
    product_id: UUID
    product_name: str
    movement_type: str
    cause: str
    quantity: int
    reason: str | None
    occurred_at: datetime
    reference_id: UUID | None
    payload: dict


@dataclass(frozen=True)
class PurchaseLineDetail:
    purchase_line_id: UUID
    unit_cost_source: Decimal
    freight_per_unit: Decimal
    landed_unit_cost: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class SaleLineDetail:
    sale_line_id: UUID
    sale_number: str
    quantity: int
    unit_price: Decimal
    unit_cost: Decimal
    cost_total: Decimal
    line_total: Decimal


class MovementSelector(BaseSelector[MovementRecord]):
    """Selector for ledger totals, history windows and movement detail."""

    def totals(self, product_id: UUID) -> tuple[int, int]:
        """(sum of IN quantities, sum of OUT quantities) for a product."""
        inbound = func.coalesce(
            func.sum(
                case(
                    (MovementRecord.movement_type == MovementType.IN.value, MovementRecord.quantity),
                    else_=0,
                )
            ),
            0,
        )
        outbound = func.coalesce(
            func.sum(
                case(
                    (MovementRecord.movement_type == MovementType.OUT.value, MovementRecord.quantity),
                    else_=0,
                )
            ),
            0,
        )
        row = self.session.execute(
            select(inbound, outbound).where(MovementRecord.product_id == product_id)
        ).one()
        return int(row[0]), int(row[1])

    def in_window(
        self,
        start: datetime,
        end: datetime,
        product_id: UUID | None = None,
        limit: int | None = None,
    ) -> list[LedgerRow]:
        """Movements in [start, end), newest first."""
        query = (
            select(MovementRecord, Product.name)
            .join(Product, MovementRecord.product_id == Product.id)
            .where(MovementRecord.occurred_at >= start)
            .where(MovementRecord.occurred_at < end)
            .order_by(MovementRecord.occurred_at.desc(), MovementRecord.sequence.desc())
        )
        if product_id is not None:
            query = query.where(MovementRecord.product_id == product_id)
        if limit is not None:
            query = query.limit(limit)

        return [
            LedgerRow(
                movement_id=record.id,
                product_id=record.product_id,
                product_name=name,
                movement_type=record.movement_type,
                cause=record.cause,
                quantity=record.quantity,
                reason=record.reason,
                occurred_at=ensure_utc(record.occurred_at),
                reference_id=record.cause_reference_id,
                payload=dict(record.cause_payload or {}),
            )
            for record, name in self.session.execute(query)
        ]

    def periods(self) -> list[MovementPeriod]:
        """Distinct (year, month) pairs that hold movements, newest first."""
        year = extract("year", MovementRecord.occurred_at)
        month = extract("month", MovementRecord.occurred_at)
        rows = self.session.execute(
            select(year, month).group_by(year, month).order_by(year.desc(), month.desc())
        )
        return [MovementPeriod(year=int(y), month=int(m)) for y, m in rows]

    def purchase_lines(self, line_ids: Iterable[UUID]) -> dict[UUID, PurchaseLineDetail]:
        ids = list(line_ids)
        if not ids:
            return {}
        rows = self.session.execute(
            select(PurchaseLine).where(PurchaseLine.id.in_(ids))
        ).scalars()
        return {
            row.id: PurchaseLineDetail(
                purchase_line_id=row.id,
                unit_cost_source=row.unit_cost_source,
                freight_per_unit=row.freight_per_unit,
                landed_unit_cost=row.landed_unit_cost,
                line_total=row.line_total,
            )
            for row in rows
        }

    def sale_lines(self, line_ids: Iterable[UUID]) -> dict[UUID, SaleLineDetail]:
        ids = list(line_ids)
        if not ids:
            return {}
        rows = self.session.execute(
            select(SaleLine, Sale.sale_number)
            .join(Sale, SaleLine.sale_id == Sale.id)
            .where(SaleLine.id.in_(ids))
        )
        return {
            line.id: SaleLineDetail(
                sale_line_id=line.id,
                sale_number=sale_number,
                quantity=line.quantity,
                unit_price=line.unit_price,
                unit_cost=line.unit_cost,
                cost_total=line.cost_total,
                line_total=line.line_total,
            )
            for line, sale_number in rows
        }
