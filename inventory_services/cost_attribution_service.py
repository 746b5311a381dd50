"""
CostAttributionService -- landed cost of a purchase.

Responsibility:
    Resolves every line of a purchase request to its landed unit cost in
    the reporting currency: source cost converted at the purchase exchange
    rate plus the line's per-unit share of freight.

Architecture position:
    Services -- stateless composition of inventory_engines.cost_attribution.
    Holds no session; the purchase workflow persists the priced lines.
"""

from inventory_engines.cost_attribution import (
    allocate_freight,
    allocated_freight_total,
    landed_unit_cost,
)
from inventory_kernel.domain.dtos import PricedPurchaseLine, PurchaseRequest
from inventory_kernel.logging_config import get_logger

logger = get_logger("services.cost_attribution")


class CostAttributionService:
    def price_purchase(self, request: PurchaseRequest) -> tuple[PricedPurchaseLine, ...]:
        """
        Landed cost for each line, in line order.

        Raises:
            InvalidPurchaseError: if the lines hold zero units in total.
        """
        quantities = [line.quantity for line in request.lines]
        freight_per_unit = allocate_freight(
            quantities=quantities, freight_total=request.freight_total
        )

        priced = tuple(
            PricedPurchaseLine(
                product_id=line.product_id,
                quantity=line.quantity,
                unit_cost_source=line.unit_cost_source,
                freight_per_unit=fpu,
                landed_unit_cost=landed_unit_cost(
                    line.unit_cost_source, request.exchange_rate, fpu
                ),
            )
            for line, fpu in zip(request.lines, freight_per_unit, strict=True)
        )

        logger.info(
            "purchase_priced",
            extra={
                "line_count": len(priced),
                "currency": request.currency,
                "exchange_rate": str(request.exchange_rate),
                "freight_total": str(request.freight_total),
                "freight_allocated": str(
                    allocated_freight_total(quantities, freight_per_unit)
                ),
            },
        )
        return priced
