"""
Injectable date source.

Services default entry, document and reversal dates from a Clock rather
than calling ``date.today()`` so tests can pin the posting date.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current time, timezone-aware UTC."""
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """Fixed clock for tests; moves only when advance() is called."""

    def __init__(self, fixed_time: datetime):
        self._now = fixed_time

    def now(self) -> datetime:
        return self._now

    def advance(self, days: int = 1) -> None:
        self._now += timedelta(days=days)
