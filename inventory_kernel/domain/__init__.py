"""
Pure domain layer.

This module contains request/result DTOs, movement causes, rounding rules
and the clock abstraction, with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

All domain objects are immutable and deterministic.
"""

from inventory_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SystemClock,
    ensure_utc,
)
from inventory_kernel.domain.dtos import (
    AdjustmentRequest,
    AdjustmentResult,
    BatchConsumption,
    BatchLayer,
    CreateBatchRequest,
    DepleteRequest,
    DepletionPlan,
    DepletionResult,
    EventRequest,
    EventStatus,
    EventSummary,
    ExpenseRequest,
    InitialStockRequest,
    PricedPurchaseLine,
    ProductRequest,
    PurchaseLineRequest,
    PurchaseRequest,
    PurchaseResult,
    ReceiptResult,
    SaleLineRequest,
    SaleRequest,
    SaleResult,
    StockValuation,
)
from inventory_kernel.domain.movements import (
    AdjustmentCause,
    InitialCause,
    MovementCause,
    MovementEntry,
    MovementType,
    PurchaseCause,
    SaleCause,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "ensure_utc",
    "AdjustmentRequest",
    "AdjustmentResult",
    "BatchConsumption",
    "BatchLayer",
    "CreateBatchRequest",
    "DepleteRequest",
    "DepletionPlan",
    "DepletionResult",
    "EventRequest",
    "EventStatus",
    "EventSummary",
    "ExpenseRequest",
    "InitialStockRequest",
    "PricedPurchaseLine",
    "ProductRequest",
    "PurchaseLineRequest",
    "PurchaseRequest",
    "PurchaseResult",
    "ReceiptResult",
    "SaleLineRequest",
    "SaleRequest",
    "SaleResult",
    "StockValuation",
    "AdjustmentCause",
    "InitialCause",
    "MovementCause",
    "MovementEntry",
    "MovementType",
    "PurchaseCause",
    "SaleCause",
]
