"""
Wiring -- builds the service graph from settings.

Responsibility:
    Single place where the engine is initialized, the immutability
    listeners are registered and the workflow and reporting services are
    constructed with their settings and clock.

Architecture position:
    Services -- composition root.  Callers (an HTTP layer, scripts, tests)
    build one ``InventoryApp`` at startup and use its services.

Usage:
    app = build_app(load_settings(path), clock=SystemClock(), create_schema=True)
    app.inventory.record_sale(request)
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session, sessionmaker

from inventory_config import InventorySettings, get_active_config
from inventory_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
from inventory_kernel.db.immutability import register_immutability_listeners
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.logging_config import configure_logging, get_logger
from inventory_services.catalog_service import CatalogService
from inventory_services.event_service import EventService
from inventory_services.inventory_service import InventoryService
from inventory_services.reporting_service import ReportingService

logger = get_logger("services.wiring")


@dataclass(frozen=True)
class InventoryApp:
    settings: InventorySettings
    clock: Clock
    session_factory: sessionmaker[Session]
    inventory: InventoryService
    catalog: CatalogService
    events: EventService
    reporting: ReportingService


def build_services(
    settings: InventorySettings,
    session_factory: sessionmaker[Session],
    clock: Clock,
) -> InventoryApp:
    """Construct the services over an existing session factory."""
    retry = {
        "retries": settings.transaction_retries,
        "backoff_seconds": settings.transaction_backoff_seconds,
    }
    return InventoryApp(
        settings=settings,
        clock=clock,
        session_factory=session_factory,
        inventory=InventoryService(
            session_factory,
            clock,
            sale_number_prefix=settings.sale_number_prefix,
            **retry,
        ),
        catalog=CatalogService(session_factory, **retry),
        events=EventService(session_factory, clock, **retry),
        reporting=ReportingService(
            session_factory,
            clock,
            low_stock_threshold=settings.low_stock_threshold,
            movement_history_limit=settings.movement_history_limit,
        ),
    )


def build_app(
    settings: InventorySettings | None = None,
    *,
    clock: Clock | None = None,
    create_schema: bool = False,
) -> InventoryApp:
    """
    Initialize the engine for ``settings`` and return the wired services.

    ``create_schema`` creates missing tables; production deployments
    manage the schema separately.
    """
    settings = settings or get_active_config()
    configure_logging(level=settings.log_level_number)
    init_engine_from_url(
        settings.database_url,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
    )
    register_immutability_listeners()
    if create_schema:
        create_tables()

    logger.info(
        "inventory_app_built",
        extra={
            "reporting_currency": settings.reporting_currency,
            "create_schema": create_schema,
        },
    )
    return build_services(settings, get_session_factory(), clock or SystemClock())
