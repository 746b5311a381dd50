"""
Tests for valuation, profit, tax and event arithmetic.
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from inventory_engines.valuation import (
    apportion_tax,
    derive_event_status,
    extract_inclusive_tax,
    line_profit,
    percent_change,
    summarize_event,
    value_layers,
)
from inventory_kernel.domain.dtos import BatchLayer, EventStatus

START = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)
END = datetime(2026, 3, 3, 18, 0, tzinfo=UTC)


def _layer(product_id, quantity, unit_cost, sequence):
    return BatchLayer(
        batch_id=uuid4(),
        product_id=product_id,
        quantity_available=quantity,
        unit_cost=Decimal(unit_cost),
        received_at=START,
        sequence=sequence,
    )


class TestValueLayers:
    def test_weighted_average_and_total(self):
        product_id = uuid4()
        valuation = value_layers(
            product_id, [_layer(product_id, 4, "10", 1), _layer(product_id, 6, "12.5", 2)]
        )

        assert valuation.stock == 10
        assert valuation.weighted_avg_unit_cost == Decimal("11.5000")
        assert valuation.total_value == Decimal("115.00")

    def test_no_stock_values_to_zero(self):
        valuation = value_layers(uuid4(), [])

        assert valuation.stock == 0
        assert valuation.weighted_avg_unit_cost == Decimal("0")
        assert valuation.total_value == Decimal("0")

    def test_average_rounds_to_four_places(self):
        product_id = uuid4()
        valuation = value_layers(
            product_id, [_layer(product_id, 1, "1", 1), _layer(product_id, 2, "2", 2)]
        )

        assert valuation.weighted_avg_unit_cost == Decimal("1.6667")
        assert valuation.total_value == Decimal("5.00")


class TestProfitAndTax:
    def test_line_profit(self):
        assert line_profit(Decimal("300"), Decimal("125")) == Decimal("175")

    def test_inclusive_tax_is_extracted(self):
        assert extract_inclusive_tax(Decimal("1150"), Decimal("0.15")) == Decimal("150.00")

    def test_no_tax_rate(self):
        assert extract_inclusive_tax(Decimal("1150"), Decimal("0")) == Decimal("0.00")

    def test_tax_apportioned_by_line_total(self):
        assert apportion_tax(Decimal("150"), Decimal("575"), Decimal("1150")) == Decimal("75")

    def test_apportion_over_nothing(self):
        assert apportion_tax(Decimal("10"), Decimal("0"), Decimal("0")) == Decimal("0")


class TestEventSummary:
    def test_roi_scenario(self):
        figures = summarize_event(
            total_sales=Decimal("5000"),
            total_tax=Decimal("500"),
            line_profit_total=Decimal("2500"),
            fixed_cost=Decimal("1000"),
            tagged_expenses=Decimal("300"),
        )

        assert figures.gross_profit == Decimal("2000.00")
        assert figures.total_expenses == Decimal("1300.00")
        assert figures.net_profit == Decimal("700.00")
        assert figures.roi == Decimal("53.85")

    def test_roi_is_zero_without_expenses(self):
        figures = summarize_event(
            total_sales=Decimal("100"),
            total_tax=Decimal("0"),
            line_profit_total=Decimal("40"),
            fixed_cost=Decimal("0"),
            tagged_expenses=Decimal("0"),
        )

        assert figures.net_profit == Decimal("40.00")
        assert figures.roi == Decimal("0.00")

    def test_loss_gives_negative_roi(self):
        figures = summarize_event(
            total_sales=Decimal("0"),
            total_tax=Decimal("0"),
            line_profit_total=Decimal("0"),
            fixed_cost=Decimal("200"),
            tagged_expenses=Decimal("0"),
        )

        assert figures.net_profit == Decimal("-200.00")
        assert figures.roi == Decimal("-100.00")


class TestEventStatus:
    @pytest.mark.parametrize(
        "now, expected",
        [
            (START - timedelta(seconds=1), EventStatus.PLANNED),
            (START, EventStatus.ACTIVE),
            (START + timedelta(days=1), EventStatus.ACTIVE),
            (END, EventStatus.ACTIVE),
            (END + timedelta(seconds=1), EventStatus.COMPLETED),
        ],
    )
    def test_status_from_window(self, now, expected):
        assert derive_event_status(START, END, now) is expected

    def test_naive_times_are_utc(self):
        naive_now = datetime(2026, 3, 2, 12, 0)

        assert derive_event_status(START, END, naive_now) is EventStatus.ACTIVE


class TestPercentChange:
    def test_increase(self):
        assert percent_change(Decimal("150"), Decimal("100")) == Decimal("50.00")

    def test_decrease(self):
        assert percent_change(Decimal("50"), Decimal("200")) == Decimal("-75.00")

    @pytest.mark.parametrize("previous", [Decimal("0"), Decimal("-5")])
    def test_no_meaningful_base(self, previous):
        assert percent_change(Decimal("10"), previous) is None
