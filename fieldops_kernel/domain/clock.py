"""
Clock -- injectable source of the current time.

Responsibility:
    Access-code suffixes and expiry, profile cache TTLs, default due dates
    and settlement dates all read time through a ``Clock`` handed to the
    owning service, never from ``datetime.now()`` directly.

Architecture position:
    Kernel > Domain.  ``SystemClock`` is the one place that reads the real
    time; everything else is pure.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone


class Clock(ABC):
    """Timezone-aware UTC time for services."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        """Calendar date of ``now()`` in UTC."""
        return self.now().astimezone(timezone.utc).date()

    def epoch_millis(self) -> int:
        return int(self.now().timestamp() * 1000)


class SystemClock(Clock):

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock pinned to an instant that only moves when told to.

    Used by the test suite; ``advance`` walks past cache TTLs and code
    expiry without sleeping.
    """

    def __init__(self, start: datetime | None = None):
        start = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        if start.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware start")
        self._now = start

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float | timedelta = 1) -> datetime:
        """Move forward and return the new time."""
        step = seconds if isinstance(seconds, timedelta) else timedelta(seconds=seconds)
        if step < timedelta(0):
            raise ValueError("time does not run backwards")
        self._now += step
        return self._now
