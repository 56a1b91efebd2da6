"""
Clock -- Injectable source of delivery timestamps.

Responsibility:
    Supplies the moment a delivery was received, an issue was reported or
    an issue was resolved.  Sessions, the gateway and the procurement
    service take a Clock in their constructors; engines receive the
    resulting ``datetime`` as an argument and never read time themselves.

Architecture position:
    Kernel > Domain.  SystemClock is the only place wall-clock time enters
    the process.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

# Fixed starting point for DeterministicClock when none is given.
EPOCH_FOR_TESTS = datetime(2024, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Returns timezone-aware UTC datetimes."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    ``now()`` is stable between calls, so a change-set's ``received_at``
    can be asserted exactly.
    """

    def __init__(self, start: datetime | None = None):
        self._current = start or EPOCH_FOR_TESTS

    def now(self) -> datetime:
        return self._current

    def advance(self, delta: timedelta | int = 1) -> datetime:
        """Move forward by ``delta`` (seconds when an int) and return the new time."""
        if isinstance(delta, int):
            delta = timedelta(seconds=delta)
        self._current = self._current + delta
        return self._current
