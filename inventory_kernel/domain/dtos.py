"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the validated request structures that enter the inventory
    kernel (one per operation) and the immutable result structures that
    leave it.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of ORM dependencies; services convert ORM rows into these DTOs at
    the persistence boundary.

Invariants enforced:
    - Every request validates all of its fields in ``__post_init__``, so a
      malformed request is rejected before any session is opened.
    - Quantities are normalized to ``int`` and amounts to ``Decimal``.
    - Collections are stored as tuples so requests cannot be mutated after
      validation.

Failure modes:
    - InvalidQuantityError on non-integer or non-positive quantities.
    - InvalidCostError on negative costs, freight or expense amounts.
    - InvalidPurchaseError on a purchase without lines.
    - InvalidRequestError on any other malformed field.

Data flow:
    Request DTO -> service (unit of work) -> Result DTO
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from inventory_kernel.domain.clock import ensure_utc
from inventory_kernel.domain.movements import (
    RECEIPT_CAUSES,
    MovementCause,
    MovementType,
)
from inventory_kernel.domain.values import (
    ZERO,
    require_non_negative_cost,
    require_whole_quantity,
    to_decimal,
)
from inventory_kernel.exceptions import (
    InvalidCostError,
    InvalidPurchaseError,
    InvalidRequestError,
)


def _require_text(value: str | None, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidRequestError(field_name, "is required")
    return str(value).strip()


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = str(value).strip()
    return stripped or None


def _optional_utc(value: datetime | None) -> datetime | None:
    return ensure_utc(value) if value is not None else None


def _require_uuid(value: object, field_name: str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise InvalidRequestError(field_name, f"not a valid id: {value!r}") from None


def _require_amount(value: object, field_name: str) -> Decimal:
    try:
        amount = require_non_negative_cost(value, field_name)
    except InvalidCostError:
        raise InvalidRequestError(field_name, "must be a number >= 0") from None
    return amount


class EventStatus(str, Enum):
    """Derived state of an event window; never stored."""

    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"


# =============================================================================
# Requests
# =============================================================================


@dataclass(frozen=True)
class CreateBatchRequest:
    """
    Request to append one batch to a product's stock.

    ``cause`` must be a receipt cause; ``purchase_line_id`` is only
    meaningful for PURCHASE batches.
    """

    product_id: UUID
    quantity: int
    unit_cost: Decimal
    received_at: datetime
    cause: MovementCause
    purchase_line_id: UUID | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "product_id", _require_uuid(self.product_id, "product_id"))
        object.__setattr__(self, "quantity", require_whole_quantity(self.quantity))
        object.__setattr__(self, "unit_cost", require_non_negative_cost(self.unit_cost))
        object.__setattr__(self, "received_at", ensure_utc(self.received_at))
        cause = MovementCause(self.cause)
        if cause not in RECEIPT_CAUSES:
            raise InvalidRequestError("cause", f"{cause.value} does not create batches")
        object.__setattr__(self, "cause", cause)
        if self.purchase_line_id is not None and cause is not MovementCause.PURCHASE:
            raise InvalidRequestError(
                "purchase_line_id", "only purchase batches link to a purchase line"
            )


@dataclass(frozen=True)
class DepleteRequest:
    """Request to remove ``quantity`` units of a product, oldest batch first."""

    product_id: UUID
    quantity: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "product_id", _require_uuid(self.product_id, "product_id"))
        object.__setattr__(self, "quantity", require_whole_quantity(self.quantity))


@dataclass(frozen=True)
class PurchaseLineRequest:
    """One product line of a purchase, costed in the purchase currency."""

    product_id: UUID
    quantity: int
    unit_cost_source: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "product_id", _require_uuid(self.product_id, "product_id"))
        object.__setattr__(self, "quantity", require_whole_quantity(self.quantity))
        object.__setattr__(
            self,
            "unit_cost_source",
            require_non_negative_cost(self.unit_cost_source, "unit_cost_source"),
        )


@dataclass(frozen=True)
class PurchaseRequest:
    """
    A supplier purchase to receive into stock.

    ``exchange_rate`` converts the purchase currency into the reporting
    currency and applies to every line.  ``freight_total`` is expressed in
    the reporting currency and is shared by all lines in proportion to
    their quantity.
    """

    lines: tuple[PurchaseLineRequest, ...]
    currency: str = "USD"
    exchange_rate: Decimal = Decimal("1")
    freight_total: Decimal = ZERO
    notes: str | None = None
    purchased_at: datetime | None = None

    def __post_init__(self) -> None:
        lines = tuple(self.lines)
        if not lines:
            raise InvalidPurchaseError("purchase has no lines")
        object.__setattr__(self, "lines", lines)

        currency = str(self.currency or "").strip().upper()
        if len(currency) != 3 or not currency.isalpha():
            raise InvalidRequestError("currency", f"not a currency code: {self.currency!r}")
        object.__setattr__(self, "currency", currency)

        try:
            rate = to_decimal(self.exchange_rate)
        except (ArithmeticError, TypeError, ValueError):
            raise InvalidRequestError("exchange_rate", "is not a number") from None
        if not rate.is_finite() or rate <= 0:
            raise InvalidRequestError("exchange_rate", "must be > 0")
        object.__setattr__(self, "exchange_rate", rate)

        object.__setattr__(
            self,
            "freight_total",
            require_non_negative_cost(self.freight_total, "freight_total"),
        )
        object.__setattr__(self, "notes", _optional_text(self.notes))
        object.__setattr__(self, "purchased_at", _optional_utc(self.purchased_at))


@dataclass(frozen=True)
class InitialStockRequest:
    """Opening stock for a product; cost is 0 unless supplied."""

    product_id: UUID
    quantity: int
    unit_cost: Decimal | None = None
    reason: str | None = None
    received_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "product_id", _require_uuid(self.product_id, "product_id"))
        object.__setattr__(self, "quantity", require_whole_quantity(self.quantity))
        if self.unit_cost is not None:
            object.__setattr__(self, "unit_cost", require_non_negative_cost(self.unit_cost))
        object.__setattr__(self, "reason", _optional_text(self.reason))
        object.__setattr__(self, "received_at", _optional_utc(self.received_at))


@dataclass(frozen=True)
class AdjustmentRequest:
    """Physical count correction; the reason is mandatory."""

    product_id: UUID
    movement_type: MovementType
    quantity: int
    reason: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "product_id", _require_uuid(self.product_id, "product_id"))
        try:
            movement_type = MovementType(self.movement_type)
        except ValueError:
            raise InvalidRequestError(
                "movement_type", f"must be 'in' or 'out', got {self.movement_type!r}"
            ) from None
        object.__setattr__(self, "movement_type", movement_type)
        object.__setattr__(self, "quantity", require_whole_quantity(self.quantity))
        object.__setattr__(self, "reason", _require_text(self.reason, "reason"))


@dataclass(frozen=True)
class SaleLineRequest:
    """One product line of a sale."""

    product_id: UUID
    quantity: int
    unit_price: Decimal
    discount: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "product_id", _require_uuid(self.product_id, "product_id"))
        object.__setattr__(self, "quantity", require_whole_quantity(self.quantity))
        object.__setattr__(self, "unit_price", _require_amount(self.unit_price, "unit_price"))
        discount = _require_amount(self.discount, "discount")
        if discount > self.unit_price * self.quantity:
            raise InvalidRequestError("discount", "exceeds the line amount")
        object.__setattr__(self, "discount", discount)

    @property
    def gross_amount(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def line_total(self) -> Decimal:
        return self.gross_amount - self.discount


@dataclass(frozen=True)
class SaleRequest:
    """
    A sale of one or more product lines.

    Prices are tax-inclusive: ``tax_rate`` (a fraction, e.g. ``0.15``) is
    used to extract the tax already contained in the discounted amount.
    ``shipping_cost`` is charged on top.
    """

    lines: tuple[SaleLineRequest, ...]
    payment_method: str = "cash"
    discount: Decimal = ZERO
    tax_rate: Decimal = ZERO
    shipping_cost: Decimal = ZERO
    event_id: UUID | None = None
    customer_ref: str | None = None
    account_ref: str | None = None
    notes: str | None = None
    sold_at: datetime | None = None

    def __post_init__(self) -> None:
        lines = tuple(self.lines)
        if not lines:
            raise InvalidRequestError("lines", "a sale needs at least one line")
        object.__setattr__(self, "lines", lines)
        object.__setattr__(
            self, "payment_method", _require_text(self.payment_method, "payment_method")
        )
        discount = _require_amount(self.discount, "discount")
        if discount > sum((line.line_total for line in lines), ZERO):
            raise InvalidRequestError("discount", "exceeds the sale amount")
        object.__setattr__(self, "discount", discount)
        tax_rate = _require_amount(self.tax_rate, "tax_rate")
        if tax_rate >= 1:
            raise InvalidRequestError("tax_rate", "must be a fraction below 1")
        object.__setattr__(self, "tax_rate", tax_rate)
        object.__setattr__(
            self, "shipping_cost", _require_amount(self.shipping_cost, "shipping_cost")
        )
        if self.event_id is not None:
            object.__setattr__(self, "event_id", _require_uuid(self.event_id, "event_id"))
        object.__setattr__(self, "customer_ref", _optional_text(self.customer_ref))
        object.__setattr__(self, "account_ref", _optional_text(self.account_ref))
        object.__setattr__(self, "notes", _optional_text(self.notes))
        object.__setattr__(self, "sold_at", _optional_utc(self.sold_at))

    def quantity_by_product(self) -> dict[UUID, int]:
        """Total requested quantity per product across all lines."""
        totals: dict[UUID, int] = {}
        for line in self.lines:
            totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
        return totals


@dataclass(frozen=True)
class ProductRequest:
    """Catalog fields of a product."""

    name: str
    price: Decimal = ZERO
    sku: str | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _require_text(self.name, "name"))
        object.__setattr__(self, "price", _require_amount(self.price, "price"))
        object.__setattr__(self, "sku", _optional_text(self.sku))
        object.__setattr__(self, "description", _optional_text(self.description))


@dataclass(frozen=True)
class EventRequest:
    """An exhibition or pop-up window that sales and expenses are tagged to."""

    name: str
    starts_at: datetime
    ends_at: datetime
    location: str | None = None
    fixed_cost: Decimal = ZERO
    notes: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _require_text(self.name, "name"))
        starts_at = ensure_utc(self.starts_at)
        ends_at = ensure_utc(self.ends_at)
        if ends_at < starts_at:
            raise InvalidRequestError("ends_at", "must not be before starts_at")
        object.__setattr__(self, "starts_at", starts_at)
        object.__setattr__(self, "ends_at", ends_at)
        object.__setattr__(self, "location", _optional_text(self.location))
        object.__setattr__(
            self, "fixed_cost", require_non_negative_cost(self.fixed_cost, "fixed_cost")
        )
        object.__setattr__(self, "notes", _optional_text(self.notes))


@dataclass(frozen=True)
class ExpenseRequest:
    """A standalone expense tagged to an event."""

    event_id: UUID
    amount: Decimal
    description: str | None = None
    occurred_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_id", _require_uuid(self.event_id, "event_id"))
        amount = require_non_negative_cost(self.amount, "amount")
        if amount == 0:
            raise InvalidCostError(self.amount, reason="amount must be > 0")
        object.__setattr__(self, "amount", amount)
        object.__setattr__(self, "description", _optional_text(self.description))
        object.__setattr__(self, "occurred_at", _optional_utc(self.occurred_at))


# =============================================================================
# Batch store / depletion results
# =============================================================================


@dataclass(frozen=True)
class BatchLayer:
    """A batch with stock still available, as seen by the FIFO planner."""

    batch_id: UUID
    product_id: UUID
    quantity_available: int
    unit_cost: Decimal
    received_at: datetime
    sequence: int


@dataclass(frozen=True)
class BatchConsumption:
    """How much one depletion took from one batch."""

    batch_id: UUID
    quantity_taken: int
    unit_cost: Decimal

    @property
    def cost(self) -> Decimal:
        return self.unit_cost * self.quantity_taken


@dataclass(frozen=True)
class DepletionPlan:
    """
    Ordered consumption of batches that satisfies one depletion.

    Guarantees:
        - ``sum(c.quantity_taken) == requested``.
        - Consumptions are in FIFO order.
    """

    product_id: UUID
    requested: int
    consumptions: tuple[BatchConsumption, ...]

    @property
    def total_quantity(self) -> int:
        return sum(c.quantity_taken for c in self.consumptions)

    @property
    def total_cost(self) -> Decimal:
        return sum((c.cost for c in self.consumptions), ZERO)


@dataclass(frozen=True)
class DepletionResult:
    """An applied depletion plan."""

    product_id: UUID
    quantity: int
    consumptions: tuple[BatchConsumption, ...]
    total_cost: Decimal
    average_unit_cost: Decimal


@dataclass(frozen=True)
class StockValuation:
    """Stock on hand and its value for one product."""

    product_id: UUID
    stock: int
    weighted_avg_unit_cost: Decimal
    total_value: Decimal


# =============================================================================
# Workflow results
# =============================================================================


@dataclass(frozen=True)
class PricedPurchaseLine:
    """A purchase line with its landed cost resolved."""

    product_id: UUID
    quantity: int
    unit_cost_source: Decimal
    freight_per_unit: Decimal
    landed_unit_cost: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.landed_unit_cost * self.quantity


@dataclass(frozen=True)
class PurchaseResult:
    purchase_id: UUID
    lines: tuple[PricedPurchaseLine, ...]
    batch_ids: tuple[UUID, ...]
    movement_ids: tuple[UUID, ...]
    subtotal: Decimal
    total: Decimal


@dataclass(frozen=True)
class ReceiptResult:
    batch_id: UUID
    movement_id: UUID
    quantity: int
    unit_cost: Decimal


@dataclass(frozen=True)
class AdjustmentResult:
    """
    Outcome of a stock adjustment.

    For decreases ``consumptions`` lists every batch touched even though the
    ledger holds a single aggregate movement.
    """

    product_id: UUID
    movement_type: MovementType
    quantity: int
    movement_id: UUID
    new_stock: int
    batch_id: UUID | None = None
    consumptions: tuple[BatchConsumption, ...] = ()


@dataclass(frozen=True)
class SaleLineResult:
    sale_line_id: UUID
    product_id: UUID
    quantity: int
    unit_price: Decimal
    unit_cost: Decimal
    cost_total: Decimal
    line_total: Decimal
    movement_id: UUID
    consumptions: tuple[BatchConsumption, ...]

    @property
    def profit(self) -> Decimal:
        return self.line_total - self.cost_total


@dataclass(frozen=True)
class SaleResult:
    sale_id: UUID
    sale_number: str
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    shipping_cost: Decimal
    total: Decimal
    lines: tuple[SaleLineResult, ...]


# =============================================================================
# Reporting
# =============================================================================


@dataclass(frozen=True)
class ProductView:
    """Catalog fields of a stored product."""

    product_id: UUID
    name: str
    price: Decimal
    sku: str | None
    description: str | None
    is_active: bool


@dataclass(frozen=True)
class SaleProfit:
    """Profit of a recorded sale from the unit costs captured at sale time."""

    sale_id: UUID
    sale_number: str
    revenue: Decimal
    cost: Decimal
    profit: Decimal


@dataclass(frozen=True)
class EventSummary:
    event_id: UUID
    name: str
    location: str | None
    starts_at: datetime
    ends_at: datetime
    status: EventStatus
    fixed_cost: Decimal
    sales_count: int
    total_sales: Decimal
    total_tax: Decimal
    gross_profit: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    roi: Decimal


@dataclass(frozen=True)
class ReconciliationReport:
    """Ledger totals for a product against the stock held in its batches."""

    product_id: UUID
    ledger_in: int
    ledger_out: int
    batch_stock: int

    @property
    def ledger_net(self) -> int:
        return self.ledger_in - self.ledger_out

    @property
    def difference(self) -> int:
        return self.batch_stock - self.ledger_net

    @property
    def is_balanced(self) -> bool:
        return self.difference == 0


@dataclass(frozen=True)
class ProductStock:
    product_id: UUID
    name: str
    sku: str | None
    stock: int
    weighted_avg_unit_cost: Decimal
    total_value: Decimal
    is_low_stock: bool
    is_out_of_stock: bool


@dataclass(frozen=True)
class InventoryOverview:
    products: tuple[ProductStock, ...]
    total_products: int
    total_stock: int
    total_value: Decimal
    low_stock_count: int
    out_of_stock_count: int


@dataclass(frozen=True)
class MovementView:
    """
    A ledger movement enriched for display.

    Purchase fields are set for PURCHASE movements and sale fields for SALE
    movements; both are None otherwise.
    """

    movement_id: UUID
    product_id: UUID
    product_name: str
    movement_type: MovementType
    cause: MovementCause
    quantity: int
    reason: str | None
    occurred_at: datetime
    reference_id: UUID | None
    unit_cost_source: Decimal | None = None
    landed_unit_cost: Decimal | None = None
    freight_per_unit: Decimal | None = None
    purchase_line_total: Decimal | None = None
    sale_number: str | None = None
    unit_price: Decimal | None = None
    sale_unit_cost: Decimal | None = None
    sale_line_total: Decimal | None = None
    sale_line_profit: Decimal | None = None


@dataclass(frozen=True)
class MovementPeriod:
    year: int
    month: int


@dataclass(frozen=True)
class TopProduct:
    product_id: UUID
    name: str
    units_sold: int
    revenue: Decimal
    profit: Decimal


@dataclass(frozen=True)
class DashboardMetrics:
    """
    Sales figures for a month (or a whole year when ``month`` is None)
    against the period before it.  Change percentages are None when the
    previous period had nothing to compare against.
    """

    year: int
    month: int | None
    revenue: Decimal
    previous_revenue: Decimal
    revenue_change_pct: Decimal | None
    profit: Decimal
    previous_profit: Decimal
    profit_change_pct: Decimal | None
    sales_count: int
    top_products: tuple[TopProduct, ...] = field(default_factory=tuple)
    low_stock: tuple[ProductStock, ...] = field(default_factory=tuple)
