"""
Module: inventory_engines.valuation
Responsibility:
    Pure arithmetic behind stock valuation, sale and event profit, event
    status and period-over-period change.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Called by the read-only ReportingService and BatchStore.

Invariants enforced:
    - Weighted average unit cost = sum(qty x cost) / sum(qty), 4 places,
      0 when there is no stock; total value is rounded to 2 places.
    - Line profit = line_total - unit_cost x quantity, using the unit cost
      captured at sale time.
    - Event: gross = line profit - tax; expenses = fixed cost + tagged
      expenses; net = gross - expenses; ROI = net / expenses x 100 (2 places),
      0 when there are no expenses.
    - Event status is a pure function of (starts_at, ends_at, now).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.clock import ensure_utc
from inventory_kernel.domain.dtos import BatchLayer, EventStatus, StockValuation
from inventory_kernel.domain.values import ZERO, round_cost, round_money

HUNDRED = Decimal("100")


def value_layers(product_id: UUID, layers: Sequence[BatchLayer]) -> StockValuation:
    """Stock, weighted average unit cost and total value of ``layers``."""
    stock = sum(layer.quantity_available for layer in layers)
    total = sum(
        (layer.unit_cost * layer.quantity_available for layer in layers), ZERO
    )
    average = total / stock if stock else ZERO
    return StockValuation(
        product_id=product_id,
        stock=stock,
        weighted_avg_unit_cost=round_cost(average),
        total_value=round_money(total),
    )


def line_profit(line_total: Decimal, cost_total: Decimal) -> Decimal:
    """Revenue of a sale line less the FIFO cost of the units it consumed."""
    return line_total - cost_total


def extract_inclusive_tax(taxable: Decimal, tax_rate: Decimal) -> Decimal:
    """Tax contained in a tax-inclusive amount, rounded to money places."""
    if tax_rate <= 0:
        return round_money(ZERO)
    return round_money(taxable * tax_rate / (1 + tax_rate))


def apportion_tax(tax: Decimal, line_total: Decimal, taxable: Decimal) -> Decimal:
    """Share of a sale's tax carried by one line, in proportion to its total."""
    if taxable == 0:
        return ZERO
    return tax * line_total / taxable


def derive_event_status(
    starts_at: datetime, ends_at: datetime, now: datetime
) -> EventStatus:
    """
    PLANNED before the window, ACTIVE inside it (bounds inclusive),
    COMPLETED after it.
    """
    starts_at, ends_at, now = ensure_utc(starts_at), ensure_utc(ends_at), ensure_utc(now)
    if now < starts_at:
        return EventStatus.PLANNED
    if now <= ends_at:
        return EventStatus.ACTIVE
    return EventStatus.COMPLETED


@dataclass(frozen=True)
class EventFigures:
    total_sales: Decimal
    total_tax: Decimal
    gross_profit: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    roi: Decimal


@traced_engine(
    "event_profit",
    "1.0",
    fingerprint_fields=(
        "total_sales",
        "total_tax",
        "line_profit_total",
        "fixed_cost",
        "tagged_expenses",
    ),
)
def summarize_event(
    *,
    total_sales: Decimal,
    total_tax: Decimal,
    line_profit_total: Decimal,
    fixed_cost: Decimal,
    tagged_expenses: Decimal,
) -> EventFigures:
    """
    Profit figures of an event.

    Tax is a pass-through collected on behalf of the tax authority, so it is
    taken out of gross profit.
    """
    gross = line_profit_total - total_tax
    expenses = fixed_cost + tagged_expenses
    net = gross - expenses
    roi = round_money(net / expenses * HUNDRED) if expenses > 0 else round_money(ZERO)
    return EventFigures(
        total_sales=round_money(total_sales),
        total_tax=round_money(total_tax),
        gross_profit=round_money(gross),
        total_expenses=round_money(expenses),
        net_profit=round_money(net),
        roi=roi,
    )


def percent_change(current: Decimal, previous: Decimal) -> Decimal | None:
    """Change from ``previous`` to ``current`` in percent; None if previous <= 0."""
    if previous <= 0:
        return None
    return round_money((current - previous) / previous * HUNDRED)
