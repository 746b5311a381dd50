"""
FifoDepletionService -- applies FIFO depletion plans to batch rows.

Responsibility:
    Removes a quantity of a product from its batches, oldest receipt first,
    and reports the per-batch consumption with its total and weighted
    average unit cost.

Architecture position:
    Services -- imperative shell, flush-only.
    Planning is delegated to the pure inventory_engines.fifo planner; this
    service reads the locked rows, plans, and writes the decrements back.

Invariants enforced:
    - Availability is checked before any batch is touched; a rejected
      request changes nothing.
    - No batch's quantity_available ever goes below zero (planner contract,
      CHECK constraint and ORM listener).
    - Postcondition: sum of decrements == requested quantity.

Failure modes:
    - InsufficientStockError (with ``available``) when the product's
      batches hold less than requested.
    - ProductNotFoundError for a missing or inactive product.
"""

from sqlalchemy.orm import Session

from inventory_engines.fifo import apply_plan, average_unit_cost, plan_fifo_depletion
from inventory_kernel.domain.dtos import DepleteRequest, DepletionResult
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.inventory_batch import InventoryBatch
from inventory_services.base import BaseService
from inventory_services.batch_store import BatchStore

logger = get_logger("services.depletion")


class FifoDepletionService(BaseService[InventoryBatch]):
    def __init__(self, session: Session, batch_store: BatchStore | None = None):
        super().__init__(session)
        self._store = batch_store or BatchStore(session)

    def deplete(self, request: DepleteRequest) -> DepletionResult:
        """
        Remove ``request.quantity`` units FIFO and return the consumption.

        Preconditions:
            The caller holds the product lock inside a unit of work.
        """
        self._store.require_product(request.product_id)
        rows = self._store.rows_for_update(request.product_id)
        layers = [row.to_layer() for row in rows]

        plan = plan_fifo_depletion(
            product_id=request.product_id,
            layers=layers,
            quantity=request.quantity,
        )
        remaining = apply_plan(layers, plan)

        rows_by_id = {row.id: row for row in rows}
        for consumption in plan.consumptions:
            rows_by_id[consumption.batch_id].quantity_available = remaining[
                consumption.batch_id
            ]
        self.session.flush()

        result = DepletionResult(
            product_id=request.product_id,
            quantity=plan.total_quantity,
            consumptions=plan.consumptions,
            total_cost=plan.total_cost,
            average_unit_cost=average_unit_cost(plan.consumptions),
        )
        logger.info(
            "fifo_depletion_applied",
            extra={
                "product_id": str(request.product_id),
                "quantity": result.quantity,
                "batches_touched": len(plan.consumptions),
                "total_cost": str(result.total_cost),
                "average_unit_cost": str(result.average_unit_cost),
            },
        )
        return result
