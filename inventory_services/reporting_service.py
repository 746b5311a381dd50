"""
ReportingService -- valuation and profit aggregation.

Responsibility:
    Read-only figures derived from batches, movements, sales and
    transactions: product valuation, sale profit, event profit and ROI,
    inventory overview, movement history, dashboard metrics and ledger
    reconciliation.

Architecture position:
    Services -- read side.  Every method opens its own read session, queries
    through the kernel selectors and applies the pure valuation and period
    engines.  Nothing here writes or locks.

Invariants enforced:
    - Sale profit uses the unit cost captured on each sale line, so it is
      stable no matter what was received afterwards.
    - Event status is derived from the injected clock on every read.
    - Stock and value are always computed from batch availability; no
      stored balance exists.

Failure modes:
    - ProductNotFoundError, SaleNotFoundError, EventNotFoundError for
      unknown ids.
    - InvalidRequestError for an out-of-range month.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from inventory_engines.periods import day_window, month_window, previous_month, year_window
from inventory_engines.valuation import (
    apportion_tax,
    derive_event_status,
    line_profit,
    percent_change,
    summarize_event,
    value_layers,
)
from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.dtos import (
    DashboardMetrics,
    EventSummary,
    InventoryOverview,
    MovementPeriod,
    MovementView,
    ProductStock,
    ReconciliationReport,
    SaleProfit,
    StockValuation,
    TopProduct,
)
from inventory_kernel.domain.movements import (
    MovementCause,
    MovementType,
    PurchaseCause,
    SaleCause,
    cause_from_payload,
)
from inventory_kernel.domain.values import ZERO, round_money
from inventory_kernel.exceptions import (
    EventNotFoundError,
    ProductNotFoundError,
    SaleNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.product import Product
from inventory_kernel.selectors.movement_selector import MovementSelector
from inventory_kernel.selectors.sales_selector import EventRow, SalesSelector, SoldLine
from inventory_kernel.selectors.stock_selector import StockSelector
from inventory_services.unit_of_work import read_session

logger = get_logger("services.reporting")

TOP_PRODUCTS_LIMIT = 5
LOW_STOCK_LIMIT = 5


class ReportingService:
    """Read-only reporting over the inventory ledger."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock,
        *,
        low_stock_threshold: int = 10,
        movement_history_limit: int = 500,
    ):
        self._session_factory = session_factory
        self._clock = clock
        self._low_stock_threshold = low_stock_threshold
        self._movement_history_limit = movement_history_limit

    # -------------------------------------------------------------------------
    # Products
    # -------------------------------------------------------------------------

    def product_valuation(self, product_id: UUID) -> StockValuation:
        with read_session(self._session_factory) as session:
            if session.get(Product, product_id) is None:
                raise ProductNotFoundError(str(product_id))
            return value_layers(product_id, StockSelector(session).layers(product_id))

    def inventory_overview(self, low_stock_threshold: int | None = None) -> InventoryOverview:
        """
        Stock, weighted average cost and value of every active product.

        A product is low on stock when 0 < stock < threshold; products with
        no stock count as out of stock instead.
        """
        threshold = (
            self._low_stock_threshold if low_stock_threshold is None else low_stock_threshold
        )
        with read_session(self._session_factory) as session:
            products = self._product_stock(session, threshold)

        return InventoryOverview(
            products=tuple(products),
            total_products=len(products),
            total_stock=sum(p.stock for p in products),
            total_value=round_money(sum((p.total_value for p in products), ZERO)),
            low_stock_count=sum(1 for p in products if p.is_low_stock),
            out_of_stock_count=sum(1 for p in products if p.is_out_of_stock),
        )

    @staticmethod
    def _product_stock(session: Session, threshold: int) -> list[ProductStock]:
        products = session.execute(
            select(Product).where(Product.is_active.is_(True)).order_by(Product.name)
        ).scalars().all()
        layers = StockSelector(session).layers_by_product(p.id for p in products)

        result = []
        for product in products:
            valuation = value_layers(product.id, layers.get(product.id, []))
            result.append(
                ProductStock(
                    product_id=product.id,
                    name=product.name,
                    sku=product.sku,
                    stock=valuation.stock,
                    weighted_avg_unit_cost=valuation.weighted_avg_unit_cost,
                    total_value=valuation.total_value,
                    is_low_stock=0 < valuation.stock < threshold,
                    is_out_of_stock=valuation.stock == 0,
                )
            )
        return result

    def reconcile_product(self, product_id: UUID) -> ReconciliationReport:
        """Compare the product's ledger net against the stock in its batches."""
        with read_session(self._session_factory) as session:
            if session.get(Product, product_id) is None:
                raise ProductNotFoundError(str(product_id))
            ledger_in, ledger_out = MovementSelector(session).totals(product_id)
            batch_stock = StockSelector(session).stock(product_id)

        report = ReconciliationReport(
            product_id=product_id,
            ledger_in=ledger_in,
            ledger_out=ledger_out,
            batch_stock=batch_stock,
        )
        if not report.is_balanced:
            logger.error(
                "reconciliation_mismatch",
                extra={
                    "product_id": str(product_id),
                    "ledger_net": report.ledger_net,
                    "batch_stock": batch_stock,
                },
            )
        return report

    # -------------------------------------------------------------------------
    # Sales and events
    # -------------------------------------------------------------------------

    def sale_profit(self, sale_id: UUID) -> SaleProfit:
        with read_session(self._session_factory) as session:
            selector = SalesSelector(session)
            header = selector.header(sale_id)
            if header is None:
                raise SaleNotFoundError(str(sale_id))
            lines = selector.sold_lines(sale_id=sale_id)

        revenue = sum((line.line_total for line in lines), ZERO)
        cost = sum((line.cost_total for line in lines), ZERO)
        return SaleProfit(
            sale_id=sale_id,
            sale_number=header.sale_number,
            revenue=round_money(revenue),
            cost=round_money(cost),
            profit=round_money(revenue - cost),
        )

    def event_summary(self, event_id: UUID) -> EventSummary:
        with read_session(self._session_factory) as session:
            selector = SalesSelector(session)
            event = selector.event(event_id)
            if event is None:
                raise EventNotFoundError(str(event_id))
            return self._summarize(selector, event)

    def list_events(self) -> list[EventSummary]:
        """Every event with its figures, newest first."""
        with read_session(self._session_factory) as session:
            selector = SalesSelector(session)
            return [self._summarize(selector, event) for event in selector.events()]

    def _summarize(self, selector: SalesSelector, event: EventRow) -> EventSummary:
        headers = selector.headers(event_id=event.event_id)
        lines = selector.sold_lines(event_id=event.event_id)
        figures = summarize_event(
            total_sales=sum((h.total for h in headers), ZERO),
            total_tax=sum((h.tax for h in headers), ZERO),
            line_profit_total=sum(
                (line_profit(sold.line_total, sold.cost_total) for sold in lines), ZERO
            ),
            fixed_cost=event.fixed_cost,
            tagged_expenses=sum(selector.event_expenses(event.event_id), ZERO),
        )
        return EventSummary(
            event_id=event.event_id,
            name=event.name,
            location=event.location,
            starts_at=event.starts_at,
            ends_at=event.ends_at,
            status=derive_event_status(event.starts_at, event.ends_at, self._clock.now()),
            fixed_cost=round_money(event.fixed_cost),
            sales_count=len(headers),
            total_sales=figures.total_sales,
            total_tax=figures.total_tax,
            gross_profit=figures.gross_profit,
            total_expenses=figures.total_expenses,
            net_profit=figures.net_profit,
            roi=figures.roi,
        )

    # -------------------------------------------------------------------------
    # Movement history
    # -------------------------------------------------------------------------

    def movement_history(
        self,
        product_id: UUID | None = None,
        day: date | None = None,
        year: int | None = None,
        month: int | None = None,
        limit: int | None = None,
    ) -> list[MovementView]:
        """
        Movements in one UTC window, newest first.

        The window is ``day`` when given, else ``year``/``month``, else the
        whole ``year``, else the current month.
        """
        now = self._clock.now()
        if day is not None:
            start, end = day_window(day)
        elif month is not None:
            start, end = month_window(year if year is not None else now.year, month)
        elif year is not None:
            start, end = year_window(year)
        else:
            start, end = month_window(now.year, now.month)

        with read_session(self._session_factory) as session:
            selector = MovementSelector(session)
            rows = selector.in_window(
                start,
                end,
                product_id=product_id,
                limit=self._movement_history_limit if limit is None else limit,
            )
            details = {
                row.movement_id: cause_from_payload(MovementCause(row.cause), row.payload)
                for row in rows
            }
            purchase_lines = selector.purchase_lines(
                d.purchase_line_id for d in details.values() if isinstance(d, PurchaseCause)
            )
            sale_lines = selector.sale_lines(
                d.sale_line_id for d in details.values() if isinstance(d, SaleCause)
            )

        views = []
        for row in rows:
            detail = details[row.movement_id]
            extra: dict[str, object] = {}
            if isinstance(detail, PurchaseCause) and detail.purchase_line_id in purchase_lines:
                pl = purchase_lines[detail.purchase_line_id]
                extra = {
                    "unit_cost_source": pl.unit_cost_source,
                    "landed_unit_cost": pl.landed_unit_cost,
                    "freight_per_unit": pl.freight_per_unit,
                    "purchase_line_total": pl.line_total,
                }
            elif isinstance(detail, SaleCause) and detail.sale_line_id in sale_lines:
                sl = sale_lines[detail.sale_line_id]
                extra = {
                    "sale_number": sl.sale_number,
                    "unit_price": sl.unit_price,
                    "sale_unit_cost": sl.unit_cost,
                    "sale_line_total": sl.line_total,
                    "sale_line_profit": line_profit(sl.line_total, sl.cost_total),
                }
            views.append(
                MovementView(
                    movement_id=row.movement_id,
                    product_id=row.product_id,
                    product_name=row.product_name,
                    movement_type=MovementType(row.movement_type),
                    cause=MovementCause(row.cause),
                    quantity=row.quantity,
                    reason=row.reason,
                    occurred_at=row.occurred_at,
                    reference_id=row.reference_id,
                    **extra,
                )
            )
        return views

    def movement_periods(self) -> list[MovementPeriod]:
        with read_session(self._session_factory) as session:
            return MovementSelector(session).periods()

    # -------------------------------------------------------------------------
    # Dashboard
    # -------------------------------------------------------------------------

    def dashboard(self, year: int | None = None, month: int | None = None) -> DashboardMetrics:
        """
        Revenue and profit for a period against the one before it.

        With neither argument the current month is compared with the
        previous month; with only ``year`` the whole year is compared with
        the year before.  Profit is line profit minus the tax collected.
        """
        now = self._clock.now()
        if year is None and month is None:
            year, month = now.year, now.month
        elif year is None:
            year = now.year

        if month is not None:
            current_window = month_window(year, month)
            previous_window = month_window(*previous_month(year, month))
        else:
            current_window = year_window(year)
            previous_window = year_window(year - 1)

        with read_session(self._session_factory) as session:
            selector = SalesSelector(session)
            current_headers = selector.headers(*current_window)
            current_lines = selector.sold_lines(*current_window)
            previous_headers = selector.headers(*previous_window)
            previous_lines = selector.sold_lines(*previous_window)
            stock = self._product_stock(session, self._low_stock_threshold)

        revenue = round_money(sum((h.total for h in current_headers), ZERO))
        previous_revenue = round_money(sum((h.total for h in previous_headers), ZERO))
        profit = self._period_profit(current_headers, current_lines)
        previous_profit = self._period_profit(previous_headers, previous_lines)

        low_stock = sorted(
            (p for p in stock if p.stock < self._low_stock_threshold),
            key=lambda p: (p.stock, p.name),
        )[:LOW_STOCK_LIMIT]

        return DashboardMetrics(
            year=year,
            month=month,
            revenue=revenue,
            previous_revenue=previous_revenue,
            revenue_change_pct=percent_change(revenue, previous_revenue),
            profit=profit,
            previous_profit=previous_profit,
            profit_change_pct=percent_change(profit, previous_profit),
            sales_count=len(current_headers),
            top_products=self._top_products(current_lines),
            low_stock=tuple(low_stock),
        )

    @staticmethod
    def _period_profit(headers, lines: list[SoldLine]) -> Decimal:
        gross = sum((line_profit(sold.line_total, sold.cost_total) for sold in lines), ZERO)
        return round_money(gross - sum((h.tax for h in headers), ZERO))

    @staticmethod
    def _top_products(lines: list[SoldLine]) -> tuple[TopProduct, ...]:
        """Best sellers by units, each line's profit net of its share of tax."""
        units: dict[UUID, int] = defaultdict(int)
        revenue: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
        profit: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
        names: dict[UUID, str] = {}
        for sold in lines:
            names[sold.product_id] = sold.product_name
            units[sold.product_id] += sold.quantity
            revenue[sold.product_id] += sold.line_total
            profit[sold.product_id] += line_profit(sold.line_total, sold.cost_total) - apportion_tax(
                sold.sale_tax, sold.line_total, sold.sale_taxable
            )

        ranked = sorted(units, key=lambda pid: (-units[pid], -revenue[pid], names[pid]))
        return tuple(
            TopProduct(
                product_id=pid,
                name=names[pid],
                units_sold=units[pid],
                revenue=round_money(revenue[pid]),
                profit=round_money(profit[pid]),
            )
            for pid in ranked[:TOP_PRODUCTS_LIMIT]
        )
