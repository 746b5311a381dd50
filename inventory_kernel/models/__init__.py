"""ORM models for the inventory kernel."""

from inventory_kernel.models.event import Event
from inventory_kernel.models.inventory_batch import InventoryBatch
from inventory_kernel.models.movement import MovementRecord
from inventory_kernel.models.product import Product
from inventory_kernel.models.purchase import Purchase, PurchaseLine
from inventory_kernel.models.sale import Sale, SaleLine, SaleLineConsumption
from inventory_kernel.models.sequence_counter import SequenceCounter
from inventory_kernel.models.transaction import (
    ReferenceType,
    Transaction,
    TransactionKind,
)

__all__ = [
    "Event",
    "InventoryBatch",
    "MovementRecord",
    "Product",
    "Purchase",
    "PurchaseLine",
    "Sale",
    "SaleLine",
    "SaleLineConsumption",
    "SequenceCounter",
    "ReferenceType",
    "Transaction",
    "TransactionKind",
]
