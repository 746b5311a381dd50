"""
Tests for freight allocation and landed unit cost.
"""

from decimal import Decimal

import pytest

from inventory_engines.cost_attribution import (
    allocate_freight,
    allocated_freight_total,
    landed_unit_cost,
)
from inventory_kernel.exceptions import (
    InvalidCostError,
    InvalidPurchaseError,
    InvalidQuantityError,
    InvalidRequestError,
)


class TestAllocateFreight:
    def test_freight_is_shared_by_quantity(self):
        per_unit = allocate_freight(quantities=[3, 7], freight_total=Decimal("100"))

        assert per_unit == (Decimal("10.0000"), Decimal("10.0000"))

    def test_per_unit_share_is_rounded_to_four_places(self):
        per_unit = allocate_freight(quantities=[1, 2], freight_total=Decimal("10"))

        assert per_unit == (Decimal("3.3333"), Decimal("3.3333"))

    def test_allocated_total_within_rounding_tolerance(self):
        quantities = [1, 2, 4]
        per_unit = allocate_freight(quantities=quantities, freight_total=Decimal("10"))

        allocated = allocated_freight_total(quantities, per_unit)
        assert abs(allocated - Decimal("10")) <= Decimal("0.0001") * sum(quantities)

    def test_zero_freight(self):
        per_unit = allocate_freight(quantities=[5], freight_total=Decimal("0"))

        assert per_unit == (Decimal("0.0000"),)

    @pytest.mark.parametrize("quantities", [[], [0]])
    def test_zero_units_is_an_invalid_purchase(self, quantities):
        with pytest.raises(InvalidPurchaseError) as exc_info:
            allocate_freight(quantities=quantities, freight_total=Decimal("50"))

        # an invalid purchase is an invalid cost
        assert isinstance(exc_info.value, InvalidCostError)
        assert exc_info.value.code == "INVALID_PURCHASE"

    def test_negative_line_quantity(self):
        with pytest.raises(InvalidQuantityError):
            allocate_freight(quantities=[5, -1], freight_total=Decimal("10"))

    def test_negative_freight(self):
        with pytest.raises(InvalidCostError):
            allocate_freight(quantities=[5], freight_total=Decimal("-1"))


class TestLandedUnitCost:
    def test_converts_and_adds_freight(self):
        assert landed_unit_cost(
            Decimal("2.50"), Decimal("24.5"), Decimal("10")
        ) == Decimal("71.2500")

    def test_rounds_to_four_places(self):
        assert landed_unit_cost(
            Decimal("1.23456"), Decimal("1"), Decimal("0")
        ) == Decimal("1.2346")

    def test_zero_source_cost_keeps_freight(self):
        assert landed_unit_cost(Decimal("0"), Decimal("1"), Decimal("3.5")) == Decimal("3.5000")

    @pytest.mark.parametrize("rate", [Decimal("0"), Decimal("-2")])
    def test_non_positive_rate(self, rate):
        with pytest.raises(InvalidRequestError):
            landed_unit_cost(Decimal("1"), rate, Decimal("0"))

    def test_negative_source_cost(self):
        with pytest.raises(InvalidCostError):
            landed_unit_cost(Decimal("-1"), Decimal("1"), Decimal("0"))
