"""
Module: inventory_kernel.selectors.stock_selector
Responsibility: Read-only views of the batches holding a product's stock.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Stock is always derived from batch ``quantity_available``; there is no
      stored per-product stock figure.
    - Layers come back in FIFO order: (received_at, sequence).
"""

from collections import defaultdict
from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import func, select

from inventory_kernel.domain.dtos import BatchLayer
from inventory_kernel.models.inventory_batch import InventoryBatch
from inventory_kernel.selectors.base import BaseSelector


class StockSelector(BaseSelector[InventoryBatch]):
    """Selector for batch stock and FIFO layers."""

    def _layer_query(self):
        return (
            select(InventoryBatch)
            .where(InventoryBatch.quantity_available > 0)
            .order_by(InventoryBatch.received_at, InventoryBatch.sequence)
        )

    def layers(self, product_id: UUID) -> list[BatchLayer]:
        """Batches of ``product_id`` with stock left, oldest first."""
        rows = self.session.execute(
            self._layer_query().where(InventoryBatch.product_id == product_id)
        ).scalars()
        return [row.to_layer() for row in rows]

    def layers_by_product(
        self, product_ids: Iterable[UUID] | None = None
    ) -> dict[UUID, list[BatchLayer]]:
        """FIFO layers grouped by product, for every product or the ones given."""
        query = self._layer_query()
        if product_ids is not None:
            query = query.where(InventoryBatch.product_id.in_(list(product_ids)))
        grouped: dict[UUID, list[BatchLayer]] = defaultdict(list)
        for row in self.session.execute(query).scalars():
            grouped[row.product_id].append(row.to_layer())
        return dict(grouped)

    def stock(self, product_id: UUID) -> int:
        total = self.session.execute(
            select(func.coalesce(func.sum(InventoryBatch.quantity_available), 0))
            .where(InventoryBatch.product_id == product_id)
        ).scalar_one()
        return int(total)
