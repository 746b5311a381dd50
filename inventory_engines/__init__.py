"""
Inventory Engines - pure calculation layer.

Engines take value objects from inventory_kernel.domain and return value
objects; they never touch a session, the clock or the filesystem.

Engines:
- fifo: FIFO depletion planning over batch layers
- cost_attribution: freight allocation and landed unit cost
- valuation: stock valuation, sale/event profit, event status
- periods: UTC reporting windows
"""

from inventory_engines.cost_attribution import allocate_freight, landed_unit_cost
from inventory_engines.fifo import average_unit_cost, plan_fifo_depletion
from inventory_engines.periods import day_window, month_window, previous_month, year_window
from inventory_engines.valuation import (
    EventFigures,
    derive_event_status,
    summarize_event,
    value_layers,
)

__all__ = [
    "allocate_freight",
    "landed_unit_cost",
    "average_unit_cost",
    "plan_fifo_depletion",
    "day_window",
    "month_window",
    "previous_month",
    "year_window",
    "EventFigures",
    "derive_event_status",
    "summarize_event",
    "value_layers",
]
