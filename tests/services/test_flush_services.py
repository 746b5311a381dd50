"""
Tests for the flush-only services that run inside a unit of work:
SequenceService, BatchStore, MovementLedger and FifoDepletionService.

All of them share one plain session here; nothing is committed.
"""

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from inventory_kernel.domain.dtos import CreateBatchRequest, DepleteRequest
from inventory_kernel.domain.movements import (
    InitialCause,
    MovementCause,
    MovementEntry,
    MovementType,
)
from inventory_kernel.exceptions import (
    InsufficientStockError,
    InvalidRequestError,
    ProductNotFoundError,
)
from inventory_kernel.models.inventory_batch import InventoryBatch
from inventory_kernel.models.product import Product
from inventory_services.batch_store import BatchStore
from inventory_services.depletion_service import FifoDepletionService
from inventory_services.movement_ledger import MovementLedger
from inventory_services.sequence_service import (
    SALE_NUMBER,
    SequenceService,
    batch_sequence_name,
)


@pytest.fixture
def product(session):
    row = Product(name="Mug", price=Decimal("12"), is_active=True)
    session.add(row)
    session.flush()
    return row


def _batch(product_id, quantity, unit_cost, received_at):
    return CreateBatchRequest(
        product_id=product_id,
        quantity=quantity,
        unit_cost=Decimal(unit_cost),
        received_at=received_at,
        cause=MovementCause.INITIAL,
    )


class TestSequenceService:
    def test_first_value_is_one(self, session):
        assert SequenceService(session).next_value(SALE_NUMBER) == 1

    def test_values_increase_monotonically(self, session):
        sequences = SequenceService(session)

        assert [sequences.next_value(SALE_NUMBER) for _ in range(4)] == [1, 2, 3, 4]
        assert sequences.current_value(SALE_NUMBER) == 4

    def test_counters_are_independent(self, session):
        sequences = SequenceService(session)
        sequences.next_value("a")
        sequences.next_value("a")

        assert sequences.next_value("b") == 1

    def test_unused_counter_reads_zero(self, session):
        assert SequenceService(session).current_value("never-used") == 0


class TestBatchStore:
    def test_create_batch(self, session, product, clock):
        store = BatchStore(session)
        batch_id = store.create_batch(_batch(product.id, 8, "2.5", clock.now()))

        batch = session.get(InventoryBatch, batch_id)
        assert batch.quantity_received == 8
        assert batch.quantity_available == 8
        assert batch.unit_cost == Decimal("2.5")
        assert batch.sequence == 1
        assert store.current_stock(product.id) == 8

    def test_sequence_is_per_product(self, session, product, clock):
        other = Product(name="Plate", price=Decimal("5"), is_active=True)
        session.add(other)
        session.flush()
        store = BatchStore(session)

        store.create_batch(_batch(product.id, 1, "1", clock.now()))
        store.create_batch(_batch(product.id, 1, "1", clock.now()))
        store.create_batch(_batch(other.id, 1, "1", clock.now()))

        sequences = SequenceService(session)
        assert sequences.current_value(batch_sequence_name(product.id)) == 2
        assert sequences.current_value(batch_sequence_name(other.id)) == 1

    def test_layers_in_fifo_order(self, session, product, clock):
        store = BatchStore(session)
        later = store.create_batch(_batch(product.id, 2, "9", clock.now() + timedelta(hours=1)))
        earlier = store.create_batch(_batch(product.id, 3, "7", clock.now()))

        assert [layer.batch_id for layer in store.available_layers(product.id)] == [earlier, later]
        assert [row.id for row in store.rows_for_update(product.id)] == [earlier, later]

    def test_valuation(self, session, product, clock):
        store = BatchStore(session)
        store.create_batch(_batch(product.id, 4, "10", clock.now()))
        store.create_batch(_batch(product.id, 6, "12.5", clock.now()))

        valuation = store.valuation(product.id)
        assert valuation.stock == 10
        assert valuation.weighted_avg_unit_cost == Decimal("11.5000")
        assert valuation.total_value == Decimal("115.00")

    def test_unknown_product(self, session, clock):
        with pytest.raises(ProductNotFoundError):
            BatchStore(session).create_batch(_batch(uuid4(), 1, "1", clock.now()))

    def test_inactive_product(self, session, product, clock):
        product.is_active = False
        session.flush()

        with pytest.raises(ProductNotFoundError):
            BatchStore(session).create_batch(_batch(product.id, 1, "1", clock.now()))

    def test_sale_cause_does_not_create_batches(self, product, clock):
        with pytest.raises(InvalidRequestError):
            CreateBatchRequest(
                product_id=product.id,
                quantity=1,
                unit_cost=Decimal("1"),
                received_at=clock.now(),
                cause=MovementCause.SALE,
            )


class TestMovementLedger:
    def test_append_assigns_sequence(self, session, product, clock):
        store = BatchStore(session)
        ledger = MovementLedger(session)
        batch_id = store.create_batch(_batch(product.id, 5, "1", clock.now()))

        first = ledger.append(
            MovementEntry(
                product_id=product.id,
                movement_type=MovementType.IN,
                quantity=5,
                detail=InitialCause(batch_id=batch_id),
                reason=None,
                occurred_at=clock.now(),
            )
        )
        second = ledger.append(
            MovementEntry(
                product_id=product.id,
                movement_type=MovementType.IN,
                quantity=2,
                detail=InitialCause(batch_id=batch_id),
                reason=None,
                occurred_at=clock.now(),
            )
        )

        assert (first.sequence, second.sequence) == (1, 2)
        assert first.cause_payload == {"batch_id": str(batch_id)}
        assert ledger.totals(product.id) == (7, 0)


class TestFifoDepletionService:
    def test_depletes_oldest_first(self, session, product, clock):
        store = BatchStore(session)
        first = store.create_batch(_batch(product.id, 5, "10", clock.now()))
        second = store.create_batch(_batch(product.id, 5, "12", clock.now() + timedelta(minutes=1)))
        third = store.create_batch(_batch(product.id, 5, "15", clock.now() + timedelta(minutes=2)))

        result = FifoDepletionService(session, store).deplete(
            DepleteRequest(product_id=product.id, quantity=7)
        )

        assert [(c.batch_id, c.quantity_taken) for c in result.consumptions] == [
            (first, 5),
            (second, 2),
        ]
        assert result.total_cost == Decimal("74")
        assert result.average_unit_cost == Decimal("10.5714")
        assert session.get(InventoryBatch, first).quantity_available == 0
        assert session.get(InventoryBatch, second).quantity_available == 3
        assert session.get(InventoryBatch, third).quantity_available == 5

    def test_insufficient_stock_leaves_batches(self, session, product, clock):
        store = BatchStore(session)
        batch_id = store.create_batch(_batch(product.id, 3, "1", clock.now()))

        with pytest.raises(InsufficientStockError) as exc_info:
            FifoDepletionService(session, store).deplete(
                DepleteRequest(product_id=product.id, quantity=4)
            )

        assert exc_info.value.available == 3
        assert session.get(InventoryBatch, batch_id).quantity_available == 3
