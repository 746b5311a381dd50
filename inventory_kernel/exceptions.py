"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from InventoryKernelError:

    InventoryKernelError (base)
    |
    +-- ValidationError
    |   +-- InvalidQuantityError
    |   +-- InvalidCostError
    |   |   +-- InvalidPurchaseError
    |   +-- InvalidRequestError
    |
    +-- CatalogError
    |   +-- ProductNotFoundError
    |   +-- DuplicateSkuError
    |
    +-- StockError
    |   +-- InsufficientStockError
    |
    +-- RecordNotFoundError
    |   +-- SaleNotFoundError
    |   +-- EventNotFoundError
    |
    +-- TransactionFailureError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | INVALID_QUANTITY            | Quantity non-positive or non-integer
                | INVALID_COST                | Negative or underivable unit cost
                | INVALID_PURCHASE            | Freight allocation over zero units
                | INVALID_REQUEST             | Any other malformed request field
----------------|-----------------------------|-----------------------------------------
Catalog         | PRODUCT_NOT_FOUND           | Product missing or inactive
                | DUPLICATE_SKU               | SKU already used by another product
----------------|-----------------------------|-----------------------------------------
Stock           | INSUFFICIENT_STOCK          | Outbound quantity exceeds availability
----------------|-----------------------------|-----------------------------------------
Lookup          | SALE_NOT_FOUND              | Sale ID doesn't exist
                | EVENT_NOT_FOUND             | Event ID doesn't exist
----------------|-----------------------------|-----------------------------------------
Transaction     | TRANSACTION_FAILURE         | Unit of work could not commit (retryable)
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Modifying a ledger or captured-cost record

===============================================================================
HANDLING PATTERNS
===============================================================================

1. SHOW THE SPECIFIC REASON:

    try:
        service.record_sale(request)
    except InsufficientStockError as e:
        notify_user(f"Insufficient stock: {e.available} available")

2. RETRY ONLY WHAT IS RETRYABLE:

    except TransactionFailureError as e:
        if e.retryable:
            schedule_retry()

Every rejected operation leaves batches and movements exactly as they were
before the call.
"""


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


# Validation exceptions


class ValidationError(InventoryKernelError):
    """Base exception for request validation errors."""

    code: str = "VALIDATION_ERROR"


class InvalidQuantityError(ValidationError):
    """Quantity is non-positive or not a whole number."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: object, field: str = "quantity"):
        self.quantity = str(quantity)
        self.field = field
        super().__init__(
            f"Invalid {field}: {quantity!r} (must be a whole number >= 1)"
        )


class InvalidCostError(ValidationError):
    """Unit cost is negative or cannot be derived."""

    code: str = "INVALID_COST"

    def __init__(self, cost: object, reason: str = "must be >= 0"):
        self.cost = str(cost)
        self.reason = reason
        super().__init__(f"Invalid cost {cost!r}: {reason}")


class InvalidPurchaseError(InvalidCostError):
    """Purchase cannot be costed (no units to spread freight over)."""

    code: str = "INVALID_PURCHASE"

    def __init__(self, reason: str):
        super().__init__(cost="freight", reason=reason)


class InvalidRequestError(ValidationError):
    """A request field other than quantity/cost is malformed."""

    code: str = "INVALID_REQUEST"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


# Catalog exceptions


class CatalogError(InventoryKernelError):
    """Base exception for product catalog errors."""

    code: str = "CATALOG_ERROR"


class ProductNotFoundError(CatalogError):
    """Product does not exist or is inactive."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str):
        self.product_id = str(product_id)
        super().__init__(f"Product not found: {product_id}")


class DuplicateSkuError(CatalogError):
    """SKU is already assigned to another product."""

    code: str = "DUPLICATE_SKU"

    def __init__(self, sku: str):
        self.sku = sku
        super().__init__(f"A product with SKU '{sku}' already exists")


# Stock exceptions


class StockError(InventoryKernelError):
    """Base exception for stock availability errors."""

    code: str = "STOCK_ERROR"


class InsufficientStockError(StockError):
    """Requested outbound quantity exceeds available stock."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: str, requested: int, available: int):
        self.product_id = str(product_id)
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, {available} available"
        )


# Lookup exceptions


class RecordNotFoundError(InventoryKernelError):
    """Base exception for missing records on the read side."""

    code: str = "RECORD_NOT_FOUND"


class SaleNotFoundError(RecordNotFoundError):
    """Sale with given ID was not found."""

    code: str = "SALE_NOT_FOUND"

    def __init__(self, sale_id: str):
        self.sale_id = str(sale_id)
        super().__init__(f"Sale not found: {sale_id}")


class EventNotFoundError(RecordNotFoundError):
    """Event with given ID was not found."""

    code: str = "EVENT_NOT_FOUND"

    def __init__(self, event_id: str):
        self.event_id = str(event_id)
        super().__init__(f"Event not found: {event_id}")


# Transaction exceptions


class TransactionFailureError(InventoryKernelError):
    """
    The unit of work could not commit.

    All batch and ledger writes of the unit of work were rolled back.
    The operation may be retried.
    """

    code: str = "TRANSACTION_FAILURE"
    retryable: bool = True

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Transaction for {operation} failed: {reason}")


# Immutability exceptions


class ImmutabilityError(InventoryKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Movements, sale lines and their consumptions are append-only; batches
    may only have their availability decreased.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
