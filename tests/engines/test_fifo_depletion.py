"""
Tests for the FIFO depletion planner.

Covers:
- Oldest-first consumption across batches
- Sequence as tie-breaker for equal receipt times
- Insufficient stock rejected before planning
- Quantity validation
- Determinism and the engine trace
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from inventory_engines.fifo import (
    apply_plan,
    average_unit_cost,
    fifo_order,
    plan_fifo_depletion,
)
from inventory_kernel.domain.dtos import BatchConsumption, BatchLayer
from inventory_kernel.exceptions import InsufficientStockError, InvalidQuantityError

T0 = datetime(2026, 1, 10, 9, 0, tzinfo=UTC)


def _layer(product_id, quantity, unit_cost, minutes=0, sequence=1):
    return BatchLayer(
        batch_id=uuid4(),
        product_id=product_id,
        quantity_available=quantity,
        unit_cost=Decimal(unit_cost),
        received_at=T0 + timedelta(minutes=minutes),
        sequence=sequence,
    )


@pytest.fixture
def product_id():
    return uuid4()


@pytest.fixture
def three_layers(product_id):
    return [
        _layer(product_id, 5, "10", minutes=0, sequence=1),
        _layer(product_id, 5, "12", minutes=1, sequence=2),
        _layer(product_id, 5, "15", minutes=2, sequence=3),
    ]


class TestFifoPlan:
    """Consumption order and quantities."""

    def test_seven_from_three_batches_of_five(self, product_id, three_layers):
        plan = plan_fifo_depletion(product_id=product_id, layers=three_layers, quantity=7)

        assert [c.batch_id for c in plan.consumptions] == [
            three_layers[0].batch_id,
            three_layers[1].batch_id,
        ]
        assert [c.quantity_taken for c in plan.consumptions] == [5, 2]
        remaining = apply_plan(three_layers, plan)
        assert [remaining[layer.batch_id] for layer in three_layers] == [0, 3, 5]

    def test_consumption_carries_batch_cost(self, product_id, three_layers):
        plan = plan_fifo_depletion(product_id=product_id, layers=three_layers, quantity=7)

        assert plan.total_quantity == 7
        assert plan.total_cost == Decimal("74")
        assert average_unit_cost(plan.consumptions) == Decimal("10.5714")

    def test_input_order_does_not_matter(self, product_id, three_layers):
        shuffled = [three_layers[2], three_layers[0], three_layers[1]]

        plan = plan_fifo_depletion(product_id=product_id, layers=shuffled, quantity=6)

        assert plan.consumptions[0].batch_id == three_layers[0].batch_id
        assert plan.consumptions[1].batch_id == three_layers[1].batch_id
        assert plan.consumptions[1].quantity_taken == 1

    def test_sequence_breaks_timestamp_ties(self, product_id):
        later_seq = _layer(product_id, 4, "9", minutes=0, sequence=2)
        earlier_seq = _layer(product_id, 4, "8", minutes=0, sequence=1)

        plan = plan_fifo_depletion(
            product_id=product_id, layers=[later_seq, earlier_seq], quantity=4
        )

        assert len(plan.consumptions) == 1
        assert plan.consumptions[0].batch_id == earlier_seq.batch_id

    def test_empty_layers_are_skipped(self, product_id):
        empty = _layer(product_id, 0, "1", minutes=0, sequence=1)
        full = _layer(product_id, 3, "2", minutes=1, sequence=2)

        assert fifo_order([empty, full]) == [full]
        plan = plan_fifo_depletion(product_id=product_id, layers=[empty, full], quantity=3)
        assert [c.batch_id for c in plan.consumptions] == [full.batch_id]

    def test_exact_total_empties_every_layer(self, product_id, three_layers):
        plan = plan_fifo_depletion(product_id=product_id, layers=three_layers, quantity=15)

        assert set(apply_plan(three_layers, plan).values()) == {0}

    def test_plan_is_deterministic(self, product_id, three_layers):
        first = plan_fifo_depletion(product_id=product_id, layers=three_layers, quantity=9)
        second = plan_fifo_depletion(product_id=product_id, layers=three_layers, quantity=9)

        assert first == second


class TestFifoRejections:
    def test_insufficient_stock_reports_available(self, product_id, three_layers):
        with pytest.raises(InsufficientStockError) as exc_info:
            plan_fifo_depletion(product_id=product_id, layers=three_layers, quantity=16)

        assert exc_info.value.requested == 16
        assert exc_info.value.available == 15
        assert exc_info.value.code == "INSUFFICIENT_STOCK"

    def test_no_layers_means_nothing_available(self, product_id):
        with pytest.raises(InsufficientStockError) as exc_info:
            plan_fifo_depletion(product_id=product_id, layers=[], quantity=1)

        assert exc_info.value.available == 0

    @pytest.mark.parametrize("quantity", [0, -3, 2.5, "abc", True])
    def test_invalid_quantity(self, product_id, three_layers, quantity):
        with pytest.raises(InvalidQuantityError):
            plan_fifo_depletion(product_id=product_id, layers=three_layers, quantity=quantity)

    def test_whole_float_is_accepted(self, product_id, three_layers):
        plan = plan_fifo_depletion(product_id=product_id, layers=three_layers, quantity=2.0)

        assert plan.requested == 2


class TestAverageUnitCost:
    def test_no_consumptions(self):
        assert average_unit_cost([]) == Decimal("0.0000")

    def test_rounds_to_four_places(self):
        consumptions = [
            BatchConsumption(batch_id=uuid4(), quantity_taken=1, unit_cost=Decimal("1")),
            BatchConsumption(batch_id=uuid4(), quantity_taken=2, unit_cost=Decimal("2")),
        ]

        assert average_unit_cost(consumptions) == Decimal("1.6667")


class TestEngineTrace:
    def test_plan_emits_trace(self, product_id, three_layers, captured_logs):
        plan_fifo_depletion(product_id=product_id, layers=three_layers, quantity=1)

        traces = [r for r in captured_logs() if r["message"] == "INVENTORY_ENGINE_TRACE"]
        assert traces
        assert traces[-1]["engine_name"] == "fifo"
        assert len(traces[-1]["input_fingerprint"]) == 16
