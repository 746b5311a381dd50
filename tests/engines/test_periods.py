"""
Tests for UTC reporting windows.
"""

from datetime import UTC, date, datetime

import pytest

from inventory_engines.periods import day_window, month_window, previous_month, year_window
from inventory_kernel.exceptions import InvalidRequestError


class TestWindows:
    def test_day(self):
        assert day_window(date(2026, 2, 28)) == (
            datetime(2026, 2, 28, tzinfo=UTC),
            datetime(2026, 3, 1, tzinfo=UTC),
        )

    def test_month(self):
        assert month_window(2026, 2) == (
            datetime(2026, 2, 1, tzinfo=UTC),
            datetime(2026, 3, 1, tzinfo=UTC),
        )

    def test_december_rolls_into_next_year(self):
        assert month_window(2025, 12)[1] == datetime(2026, 1, 1, tzinfo=UTC)

    def test_year(self):
        assert year_window(2026) == (
            datetime(2026, 1, 1, tzinfo=UTC),
            datetime(2027, 1, 1, tzinfo=UTC),
        )

    @pytest.mark.parametrize("month", [0, 13])
    def test_month_out_of_range(self, month):
        with pytest.raises(InvalidRequestError):
            month_window(2026, month)


class TestPreviousMonth:
    def test_mid_year(self):
        assert previous_month(2026, 5) == (2026, 4)

    def test_january(self):
        assert previous_month(2026, 1) == (2025, 12)
