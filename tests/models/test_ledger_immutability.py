"""
Tests for ORM-level immutability of the movement ledger, sale lines,
their consumptions and inventory batches.
"""

from decimal import Decimal

import pytest
from sqlalchemy import select

from inventory_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from inventory_kernel.domain.dtos import SaleLineRequest, SaleRequest
from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.models.inventory_batch import InventoryBatch
from inventory_kernel.models.movement import MovementRecord
from inventory_kernel.models.sale import SaleLine, SaleLineConsumption


@pytest.fixture
def sold(inventory, stocked_product):
    """A product with two batches and one recorded sale."""
    product_id = stocked_product((5, "10"), (5, "12"))
    sale = inventory.record_sale(
        SaleRequest(
            lines=(SaleLineRequest(product_id=product_id, quantity=7, unit_price=Decimal("20")),),
        )
    )
    return product_id, sale


def _first(session, model, **filters):
    query = select(model)
    for name, value in filters.items():
        query = query.where(getattr(model, name) == value)
    return session.execute(query).scalars().first()


class TestMovementImmutability:
    def test_update_blocked(self, session, sold):
        product_id, _ = sold
        movement = _first(session, MovementRecord, product_id=product_id)
        movement.reason = "rewritten"

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()

        assert exc_info.value.code == "IMMUTABILITY_VIOLATION"

    def test_quantity_change_blocked(self, session, sold):
        product_id, _ = sold
        movement = _first(session, MovementRecord, product_id=product_id)
        movement.quantity = movement.quantity + 1

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_delete_blocked(self, session, sold):
        product_id, _ = sold
        session.delete(_first(session, MovementRecord, product_id=product_id))

        with pytest.raises(ImmutabilityViolationError):
            session.flush()


class TestSaleLineImmutability:
    def test_unit_cost_cannot_change(self, session, sold):
        _, sale = sold
        line = session.get(SaleLine, sale.lines[0].sale_line_id)
        line.unit_cost = Decimal("1")

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_delete_blocked(self, session, sold):
        _, sale = sold
        session.delete(session.get(SaleLine, sale.lines[0].sale_line_id))

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_consumption_cannot_change(self, session, sold):
        _, sale = sold
        consumption = _first(
            session, SaleLineConsumption, sale_line_id=sale.lines[0].sale_line_id
        )
        consumption.quantity_taken = 1

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_consumption_delete_blocked(self, session, sold):
        _, sale = sold
        session.delete(
            _first(session, SaleLineConsumption, sale_line_id=sale.lines[0].sale_line_id)
        )

        with pytest.raises(ImmutabilityViolationError):
            session.flush()


class TestBatchImmutability:
    @pytest.fixture
    def open_batch(self, session, sold):
        product_id, _ = sold
        # selling 7 of 10 leaves 3 units in the second batch
        return session.execute(
            select(InventoryBatch)
            .where(InventoryBatch.product_id == product_id)
            .where(InventoryBatch.quantity_available > 0)
        ).scalar_one()

    def test_available_may_decrease(self, session, open_batch):
        open_batch.quantity_available = open_batch.quantity_available - 1

        session.flush()

    def test_available_cannot_increase(self, session, open_batch):
        open_batch.quantity_available = open_batch.quantity_available + 1

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_available_cannot_go_negative(self, session, open_batch):
        open_batch.quantity_available = -1

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    @pytest.mark.parametrize(
        "field, value",
        [("unit_cost", Decimal("99")), ("quantity_received", 50), ("sequence", 9)],
    )
    def test_fixed_fields(self, session, open_batch, field, value):
        setattr(open_batch, field, value)

        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_depleted_batch_kept(self, session, sold):
        product_id, _ = sold
        empty = _first(session, InventoryBatch, product_id=product_id, quantity_available=0)

        session.delete(empty)
        with pytest.raises(ImmutabilityViolationError):
            session.flush()


class TestListenerRegistration:
    def test_unregistered_listeners_allow_edits(self, session, sold):
        product_id, _ = sold
        movement = _first(session, MovementRecord, product_id=product_id)
        unregister_immutability_listeners()
        try:
            movement.reason = "edited while unguarded"
            session.flush()
        finally:
            register_immutability_listeners()
