"""
Module: inventory_engines.periods
Responsibility:
    Half-open UTC time windows for reporting periods (day, month, year) and
    the period that precedes each of them.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Used by ReportingService for movement history and dashboard queries.

Invariants enforced:
    - Every window is [start, end) in UTC, so adjacent periods never share
      an instant.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

from inventory_kernel.exceptions import InvalidRequestError

Window = tuple[datetime, datetime]


def _check_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise InvalidRequestError("month", f"must be 1..12, got {month}")


def day_window(day: date) -> Window:
    start = datetime(day.year, day.month, day.day, tzinfo=UTC)
    return start, start + timedelta(days=1)


def month_window(year: int, month: int) -> Window:
    _check_month(month)
    start = datetime(year, month, 1, tzinfo=UTC)
    next_year, next_month = (year + 1, 1) if month == 12 else (year, month + 1)
    return start, datetime(next_year, next_month, 1, tzinfo=UTC)


def year_window(year: int) -> Window:
    return datetime(year, 1, 1, tzinfo=UTC), datetime(year + 1, 1, 1, tzinfo=UTC)


def previous_month(year: int, month: int) -> tuple[int, int]:
    _check_month(month)
    if month == 1:
        return year - 1, 12
    return year, month - 1
