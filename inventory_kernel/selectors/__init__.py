"""Read-only query selectors over the inventory tables."""

from inventory_kernel.selectors.movement_selector import MovementSelector
from inventory_kernel.selectors.sales_selector import SalesSelector
from inventory_kernel.selectors.stock_selector import StockSelector

__all__ = [
    "MovementSelector",
    "SalesSelector",
    "StockSelector",
]
