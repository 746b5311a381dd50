"""
Clock -- injectable time source.

Services take a Clock instead of calling ``datetime.now()``, so receipt,
movement and sale timestamps and derived event statuses are reproducible
in tests.  SystemClock is the only place that reads the wall clock.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to UTC.

    Naive values are taken to already be UTC (some backends drop the
    offset on read).
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current time, timezone-aware."""
        ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock.  ``now()`` returns the same value until ``advance()`` is
    called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._start = ensure_utc(
            fixed_time or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        )
        self._elapsed = timedelta(0)

    def now(self) -> datetime:
        return self._start + self._elapsed

    def advance(self, seconds: int = 1) -> None:
        self._elapsed += timedelta(seconds=seconds)
