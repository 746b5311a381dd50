"""
Module: inventory_kernel.selectors.sales_selector
Responsibility: Read-only queries over recorded sales, their lines and the
    expense transactions tagged to events.
Architecture position: Kernel > Selectors.

Rows come back unaggregated; profit arithmetic belongs to the valuation
engine, which the reporting service applies on top of these rows.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from inventory_kernel.domain.clock import ensure_utc
from inventory_kernel.models.event import Event
from inventory_kernel.models.product import Product
from inventory_kernel.models.sale import Sale, SaleLine
from inventory_kernel.models.transaction import ReferenceType, Transaction, TransactionKind
from inventory_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class SaleHeader:
    sale_id: UUID
    sale_number: str
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal


@dataclass(frozen=True)
class EventRow:
    event_id: UUID
    name: str
    location: str | None
    starts_at: datetime
    ends_at: datetime
    fixed_cost: Decimal


@dataclass(frozen=True)
class SoldLine:
    """A sale line with the sale-level figures needed to apportion tax."""

    sale_id: UUID
    product_id: UUID
    product_name: str
    quantity: int
    line_total: Decimal
    cost_total: Decimal
    sale_tax: Decimal
    sale_taxable: Decimal


class SalesSelector(BaseSelector[Sale]):
    """Selector for sales, sale lines and event expenses."""

    def _filtered(self, query, start, end, event_id):
        if start is not None:
            query = query.where(Sale.sold_at >= start)
        if end is not None:
            query = query.where(Sale.sold_at < end)
        if event_id is not None:
            query = query.where(Sale.event_id == event_id)
        return query

    def header(self, sale_id: UUID) -> SaleHeader | None:
        sale = self.session.get(Sale, sale_id)
        if sale is None:
            return None
        return self._to_header(sale)

    def headers(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        event_id: UUID | None = None,
    ) -> list[SaleHeader]:
        query = self._filtered(select(Sale), start, end, event_id).order_by(Sale.sequence)
        return [self._to_header(sale) for sale in self.session.execute(query).scalars()]

    def sold_lines(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        event_id: UUID | None = None,
        sale_id: UUID | None = None,
    ) -> list[SoldLine]:
        query = (
            select(
                SaleLine.sale_id,
                SaleLine.product_id,
                Product.name,
                SaleLine.quantity,
                SaleLine.line_total,
                SaleLine.cost_total,
                Sale.tax,
                Sale.subtotal,
                Sale.discount,
            )
            .join(Sale, SaleLine.sale_id == Sale.id)
            .join(Product, SaleLine.product_id == Product.id)
            .order_by(Sale.sequence, SaleLine.line_number)
        )
        query = self._filtered(query, start, end, event_id)
        if sale_id is not None:
            query = query.where(SaleLine.sale_id == sale_id)

        return [
            SoldLine(
                sale_id=row.sale_id,
                product_id=row.product_id,
                product_name=row.name,
                quantity=int(row.quantity),
                line_total=row.line_total,
                cost_total=row.cost_total,
                sale_tax=row.tax,
                sale_taxable=row.subtotal - row.discount,
            )
            for row in self.session.execute(query)
        ]

    def event(self, event_id: UUID) -> EventRow | None:
        event = self.session.get(Event, event_id)
        return self._to_event_row(event) if event is not None else None

    def events(self) -> list[EventRow]:
        """Events, newest start first."""
        rows = self.session.execute(
            select(Event).order_by(Event.starts_at.desc(), Event.created_at.desc())
        ).scalars()
        return [self._to_event_row(event) for event in rows]

    def event_expenses(self, event_id: UUID) -> list[Decimal]:
        """Amounts of EXPENSE transactions tagged to ``event_id``."""
        return list(
            self.session.execute(
                select(Transaction.amount)
                .where(Transaction.kind == TransactionKind.EXPENSE.value)
                .where(Transaction.reference_type == ReferenceType.EVENT.value)
                .where(Transaction.reference_id == event_id)
            ).scalars()
        )

    @staticmethod
    def _to_event_row(event: Event) -> EventRow:
        return EventRow(
            event_id=event.id,
            name=event.name,
            location=event.location,
            starts_at=ensure_utc(event.starts_at),
            ends_at=ensure_utc(event.ends_at),
            fixed_cost=event.fixed_cost,
        )

    @staticmethod
    def _to_header(sale: Sale) -> SaleHeader:
        return SaleHeader(
            sale_id=sale.id,
            sale_number=sale.sale_number,
            subtotal=sale.subtotal,
            discount=sale.discount,
            tax=sale.tax,
            total=sale.total,
        )
