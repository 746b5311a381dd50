"""
BatchStore -- persistence of inventory batches.

Responsibility:
    Creates batches for received stock, answers stock and valuation
    questions for a product, and hands locked batch rows to the FIFO
    depletion service.

Architecture position:
    Services -- imperative shell, flush-only.
    Reads go through StockSelector; valuation arithmetic is delegated to
    inventory_engines.valuation.

Invariants enforced:
    - A new batch starts with quantity_available == quantity_received.
    - Per-product batch sequence numbers come from SequenceService and
      preserve insertion order, so batches received at the same instant are
      consumed in the order they were created.
    - Batches are never deleted (ORM listener), so a fully depleted batch
      still anchors its receipt history.

Failure modes:
    - ProductNotFoundError for a missing or inactive product.
    - InvalidQuantityError / InvalidCostError are raised by
      CreateBatchRequest before this service is reached.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_engines.valuation import value_layers
from inventory_kernel.domain.dtos import BatchLayer, CreateBatchRequest, StockValuation
from inventory_kernel.exceptions import ProductNotFoundError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.inventory_batch import InventoryBatch
from inventory_kernel.models.product import Product
from inventory_kernel.selectors.stock_selector import StockSelector
from inventory_services.base import BaseService
from inventory_services.sequence_service import SequenceService, batch_sequence_name

logger = get_logger("services.batch_store")


class BatchStore(BaseService[InventoryBatch]):
    """
    Batch persistence for one session.

    Contract:
        Callers that mutate stock hold the product lock (see
        ``UnitOfWork.lock_product``) before calling ``create_batch`` or
        ``rows_for_update``.
    """

    def __init__(self, session: Session, sequences: SequenceService | None = None):
        super().__init__(session)
        self._sequences = sequences or SequenceService(session)
        self._stock = StockSelector(session)

    def require_product(self, product_id: UUID) -> Product:
        product = self.session.get(Product, product_id)
        if product is None or not product.is_active:
            raise ProductNotFoundError(str(product_id))
        return product

    def create_batch(self, request: CreateBatchRequest) -> UUID:
        """
        Append one batch to a product's stock and return its id.

        Postconditions:
            The batch is flushed with the next per-product sequence number.
        """
        self.require_product(request.product_id)
        sequence = self._sequences.next_value(batch_sequence_name(request.product_id))

        batch = InventoryBatch(
            product_id=request.product_id,
            quantity_received=request.quantity,
            quantity_available=request.quantity,
            unit_cost=request.unit_cost,
            received_at=request.received_at,
            sequence=sequence,
            cause=request.cause.value,
            purchase_line_id=request.purchase_line_id,
        )
        self.session.add(batch)
        self.session.flush()

        logger.info(
            "batch_created",
            extra={
                "batch_id": str(batch.id),
                "product_id": str(request.product_id),
                "quantity": request.quantity,
                "unit_cost": str(request.unit_cost),
                "cause": request.cause.value,
                "sequence": sequence,
            },
        )
        return batch.id

    def current_stock(self, product_id: UUID) -> int:
        return self._stock.stock(product_id)

    def available_layers(self, product_id: UUID) -> list[BatchLayer]:
        """Batches with stock left, ordered by (received_at, sequence)."""
        return self._stock.layers(product_id)

    def valuation(self, product_id: UUID) -> StockValuation:
        return value_layers(product_id, self.available_layers(product_id))

    def rows_for_update(self, product_id: UUID) -> list[InventoryBatch]:
        """Batch rows with stock left, locked and in FIFO order."""
        return list(
            self.session.execute(
                select(InventoryBatch)
                .where(InventoryBatch.product_id == product_id)
                .where(InventoryBatch.quantity_available > 0)
                .order_by(InventoryBatch.received_at, InventoryBatch.sequence)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalars()
        )
