"""
Inventory Services - stateful workflows over the inventory kernel.

Write side (flush-only, inside a UnitOfWork):
- BatchStore, MovementLedger, FifoDepletionService, SequenceService
- InventoryService: purchase, initial stock, adjustment, sale
- CatalogService, EventService

Read side:
- ReportingService: valuation, profit, events, history, dashboard
"""

from inventory_services.batch_store import BatchStore
from inventory_services.catalog_service import CatalogService
from inventory_services.cost_attribution_service import CostAttributionService
from inventory_services.depletion_service import FifoDepletionService
from inventory_services.event_service import EventService
from inventory_services.inventory_service import InventoryService
from inventory_services.movement_ledger import MovementLedger
from inventory_services.reporting_service import ReportingService
from inventory_services.sequence_service import SequenceService
from inventory_services.unit_of_work import UnitOfWork, read_session, retry_transaction
from inventory_services.wiring import InventoryApp, build_app, build_services

__all__ = [
    "BatchStore",
    "CatalogService",
    "CostAttributionService",
    "FifoDepletionService",
    "EventService",
    "InventoryService",
    "MovementLedger",
    "ReportingService",
    "SequenceService",
    "UnitOfWork",
    "read_session",
    "retry_transaction",
    "InventoryApp",
    "build_app",
    "build_services",
]
