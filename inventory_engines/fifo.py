"""
Module: inventory_engines.fifo
Responsibility:
    Plan the removal of a quantity from a product's batches, oldest receipt
    first, and report exactly how much each batch gives up.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import inventory_kernel/domain and inventory_kernel/exceptions.
    The stateful FifoDepletionService applies plans to the batch store.

Invariants enforced:
    - Availability is checked in aggregate BEFORE planning; an unsatisfiable
      request yields InsufficientStockError and no plan.
    - Layers are consumed ordered by (received_at, sequence); a younger
      batch is never touched while an older one still has stock.
    - sum(quantity_taken) == requested, and no consumption exceeds its
      layer's availability.
    - Deterministic: the same layer snapshot always yields the same plan.

Failure modes:
    - InvalidQuantityError for a non-integer or non-positive quantity.
    - InsufficientStockError (carrying ``available``) when the layers hold
      less than requested.

Usage:
    plan = plan_fifo_depletion(product_id=pid, layers=layers, quantity=7)
    remaining = apply_plan(layers, plan)
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from uuid import UUID

from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.dtos import BatchConsumption, BatchLayer, DepletionPlan
from inventory_kernel.domain.values import ZERO, require_whole_quantity, round_cost
from inventory_kernel.exceptions import InsufficientStockError
from inventory_kernel.logging_config import get_logger

logger = get_logger("engines.fifo")


def fifo_order(layers: Sequence[BatchLayer]) -> list[BatchLayer]:
    """Layers with stock, oldest first; insertion order breaks timestamp ties."""
    return sorted(
        (layer for layer in layers if layer.quantity_available > 0),
        key=lambda layer: (layer.received_at, layer.sequence),
    )


@traced_engine("fifo", "1.0", fingerprint_fields=("product_id", "layers", "quantity"))
def plan_fifo_depletion(
    *,
    product_id: UUID,
    layers: Sequence[BatchLayer],
    quantity: int,
) -> DepletionPlan:
    """
    Build the FIFO consumption plan for ``quantity`` units.

    Preconditions:
        ``layers`` all belong to ``product_id``.
    Postconditions:
        The returned plan's consumptions sum to ``quantity``.
    Raises:
        InsufficientStockError: if total availability < quantity.
    """
    quantity = require_whole_quantity(quantity)
    ordered = fifo_order(layers)
    available = sum(layer.quantity_available for layer in ordered)

    if quantity > available:
        logger.info(
            "fifo_insufficient_stock",
            extra={
                "product_id": str(product_id),
                "requested": quantity,
                "available": available,
            },
        )
        raise InsufficientStockError(str(product_id), quantity, available)

    remaining = quantity
    consumptions: list[BatchConsumption] = []
    for layer in ordered:
        if remaining == 0:
            break
        take = min(remaining, layer.quantity_available)
        consumptions.append(
            BatchConsumption(
                batch_id=layer.batch_id,
                quantity_taken=take,
                unit_cost=layer.unit_cost,
            )
        )
        remaining -= take

    return DepletionPlan(
        product_id=product_id,
        requested=quantity,
        consumptions=tuple(consumptions),
    )


def average_unit_cost(consumptions: Sequence[BatchConsumption]) -> Decimal:
    """Quantity-weighted unit cost of a set of consumptions, 4 places."""
    quantity = sum(c.quantity_taken for c in consumptions)
    if quantity == 0:
        return round_cost(ZERO)
    total = sum((c.cost for c in consumptions), ZERO)
    return round_cost(total / quantity)


def apply_plan(
    layers: Sequence[BatchLayer], plan: DepletionPlan
) -> dict[UUID, int]:
    """
    Availability per batch after applying ``plan`` to ``layers``.

    Used to preview a depletion without touching storage.
    """
    after = {layer.batch_id: layer.quantity_available for layer in layers}
    for consumption in plan.consumptions:
        after[consumption.batch_id] -= consumption.quantity_taken
    return after
