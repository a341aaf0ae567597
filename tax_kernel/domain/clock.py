"""
Clock -- where services get "now" from.

Invoice drafts take their issue date from an injected Clock, so engines
and services never read the wall clock themselves and tests can pin
dates exactly.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone, tzinfo


class Clock(ABC):
    """Source of the current time. Always timezone-aware."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        """Calendar date of ``now()`` in the clock's own time zone."""
        return self.now().date()


class SystemClock(Clock):
    """
    Wall clock.

    ``tz`` decides which calendar date an invoice issued around midnight
    carries; Kigali is ``timezone(timedelta(hours=2))``.
    """

    def __init__(self, tz: tzinfo = timezone.utc):
        self._tz = tz

    def now(self) -> datetime:
        return datetime.now(self._tz)


class DeterministicClock(Clock):
    """Clock frozen at one instant until moved with ``set_time`` or ``advance``."""

    DEFAULT_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __init__(self, fixed_time: datetime | None = None):
        self._time = self._aware(fixed_time or self.DEFAULT_TIME)

    def now(self) -> datetime:
        return self._time

    def set_time(self, time: datetime) -> None:
        self._time = self._aware(time)

    def advance(self, seconds: int = 1) -> None:
        self._time += timedelta(seconds=seconds)

    @staticmethod
    def _aware(time: datetime) -> datetime:
        if time.tzinfo is None:
            raise ValueError(f"Clock time must be timezone-aware: {time!r}")
        return time
