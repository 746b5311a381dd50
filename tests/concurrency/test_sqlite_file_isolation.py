"""
Unit-of-work isolation on a file-backed SQLite database.

Every session checks out its own connection and starts with BEGIN
IMMEDIATE, so a failed unit on one thread is rolled back completely even
when another thread commits while it is open.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from decimal import Decimal
from threading import Barrier, Event

import pytest
from sqlalchemy.exc import OperationalError

from inventory_config import InventorySettings
from inventory_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from inventory_kernel.db.immutability import register_immutability_listeners
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.domain.dtos import AdjustmentRequest, InitialStockRequest, ProductRequest
from inventory_kernel.exceptions import TransactionFailureError
from inventory_services.movement_ledger import MovementLedger
from inventory_services.wiring import build_services

START = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
def file_app(tmp_path):
    url = f"sqlite:///{tmp_path / 'inventory.db'}"
    init_engine_from_url(url, pool_size=4, max_overflow=0, pool_timeout=10)
    register_immutability_listeners()
    create_tables()
    settings = InventorySettings(
        database_url=url,
        transaction_retries=2,
        transaction_backoff_seconds=0,
    )
    try:
        yield build_services(settings, get_session_factory(), DeterministicClock(START))
    finally:
        reset_engine()


def _stocked(app, name, quantity):
    product_id = app.catalog.create_product(ProductRequest(name=name, price=Decimal("5"))).product_id
    app.inventory.add_initial_stock(
        InitialStockRequest(product_id=product_id, quantity=quantity, unit_cost=Decimal("2"))
    )
    return product_id


class TestFileDatabaseEngine:
    def test_file_database_uses_a_connection_pool(self, file_app):
        engine = get_engine()

        assert engine.pool.__class__.__name__ == "QueuePool"
        with engine.connect() as first, engine.connect() as second:
            assert first.connection.dbapi_connection is not second.connection.dbapi_connection

    def test_sequential_workflows_persist(self, file_app):
        mug = _stocked(file_app, "Mug", 4)

        assert file_app.reporting.product_valuation(mug).stock == 4
        assert file_app.reporting.reconcile_product(mug).is_balanced


class TestRollbackAcrossThreads:
    def test_failed_unit_is_not_committed_by_another_thread(self, file_app, monkeypatch):
        mug = _stocked(file_app, "Mug", 10)
        cap = _stocked(file_app, "Cap", 5)
        cap_committed = Event()
        barrier = Barrier(2)
        original_append = MovementLedger.append

        def append_failing_for_mug(self, entry):
            if entry.product_id == mug:
                cap_committed.wait(timeout=1)
                raise OperationalError(
                    "INSERT INTO inventory_movements", {}, Exception("disk I/O error")
                )
            return original_append(self, entry)

        monkeypatch.setattr(MovementLedger, "append", append_failing_for_mug)

        def deplete_mug():
            barrier.wait()
            file_app.inventory.adjust_stock(
                AdjustmentRequest(product_id=mug, movement_type="out", quantity=4, reason="Breakage")
            )

        def restock_cap():
            barrier.wait()
            file_app.inventory.adjust_stock(
                AdjustmentRequest(product_id=cap, movement_type="in", quantity=1, reason="Found")
            )
            cap_committed.set()

        with ThreadPoolExecutor(max_workers=2) as pool:
            mug_future = pool.submit(deplete_mug)
            cap_future = pool.submit(restock_cap)

            with pytest.raises(TransactionFailureError):
                mug_future.result()
            cap_future.result()

        assert file_app.reporting.product_valuation(mug).stock == 10
        assert file_app.reporting.reconcile_product(mug).is_balanced
        assert file_app.reporting.product_valuation(cap).stock == 6
        assert file_app.reporting.reconcile_product(cap).is_balanced
