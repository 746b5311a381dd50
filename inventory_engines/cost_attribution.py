"""
Module: inventory_engines.cost_attribution
Responsibility:
    Compute the landed unit cost of received stock: source-currency cost
    converted at the purchase exchange rate plus the line's per-unit share
    of the purchase freight.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    The stateful CostAttributionService composes these functions for a
    whole purchase request.

Invariants enforced:
    - Freight is shared in proportion to line quantity: a line's share is
      ``freight_total x line_qty / total_qty`` and its per-unit freight is
      that share divided by ``line_qty``, rounded to 4 places.
    - Landed cost = round(source_cost x rate + freight_per_unit, 4).
    - Allocated freight sums back to ``freight_total`` within rounding
      tolerance (4 places per unit).

Failure modes:
    - InvalidPurchaseError when the purchase holds zero units in total.
    - InvalidQuantityError for a non-integer or non-positive line quantity.
    - InvalidCostError for negative costs or freight.
    - InvalidRequestError for a non-positive exchange rate.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.values import (
    require_non_negative_cost,
    require_whole_quantity,
    round_cost,
    to_decimal,
)
from inventory_kernel.exceptions import InvalidPurchaseError, InvalidRequestError
from inventory_kernel.logging_config import get_logger

logger = get_logger("engines.cost_attribution")


@traced_engine(
    "cost_attribution", "1.0", fingerprint_fields=("quantities", "freight_total")
)
def allocate_freight(
    *,
    quantities: Sequence[int],
    freight_total: Decimal,
) -> tuple[Decimal, ...]:
    """
    Per-unit freight for each line, in line order.

    Raises:
        InvalidPurchaseError: if ``quantities`` sum to zero (or is empty).
    """
    freight = require_non_negative_cost(freight_total, "freight_total")
    if not quantities or sum(quantities) == 0:
        raise InvalidPurchaseError("cannot allocate freight over zero units")
    lines = [require_whole_quantity(q) for q in quantities]
    total_quantity = sum(lines)

    per_unit: list[Decimal] = []
    for line_quantity in lines:
        share = freight * line_quantity / total_quantity
        per_unit.append(round_cost(share / line_quantity))

    logger.debug(
        "freight_allocated",
        extra={
            "line_count": len(lines),
            "total_quantity": total_quantity,
            "freight_total": str(freight),
        },
    )
    return tuple(per_unit)


def landed_unit_cost(
    source_cost: Decimal,
    exchange_rate: Decimal,
    freight_per_unit: Decimal,
) -> Decimal:
    """Unit cost in the reporting currency including freight, 4 places."""
    cost = require_non_negative_cost(source_cost, "unit_cost_source")
    freight = require_non_negative_cost(freight_per_unit, "freight_per_unit")
    rate = to_decimal(exchange_rate)
    if rate <= 0:
        raise InvalidRequestError("exchange_rate", "must be > 0")
    return round_cost(cost * rate + freight)


def allocated_freight_total(
    quantities: Sequence[int], freight_per_unit: Sequence[Decimal]
) -> Decimal:
    """Freight actually carried by the lines after per-unit rounding."""
    return sum(
        (rate * qty for qty, rate in zip(quantities, freight_per_unit, strict=True)),
        Decimal("0"),
    )
