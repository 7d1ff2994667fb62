"""
Injectable time for services.

Services never call ``datetime.now()`` or ``date.today()``; they receive a
``Clock``.  Instants (``approved_at``, ``resolved_at``, explanation
``submitted_at``) are timezone-aware UTC.  Calendar dates (notice issue
date, response deadline, deduction date) are Philippine business dates:
an explanation sent at 23:30 Manila time on the deadline is on time even
though it is already the next day in UTC.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone

# Philippine Standard Time; no daylight saving.
MANILA = timezone(timedelta(hours=8), "PHT")


class Clock(ABC):

    business_tz: timezone = MANILA

    @abstractmethod
    def now(self) -> datetime:
        """Current instant, timezone-aware."""

    def today(self) -> date:
        """Current business date in ``business_tz``."""
        return self.now().astimezone(self.business_tz).date()


class SystemClock(Clock):

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """Clock that only moves when told to.  Used by tests and replays."""

    def __init__(self, start: datetime | None = None):
        start = start or datetime(2024, 1, 1, 4, 0, tzinfo=timezone.utc)
        if start.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware start")
        self._now = start

    def now(self) -> datetime:
        return self._now

    def set_time(self, time: datetime) -> None:
        if time.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware time")
        self._now = time

    def advance(self, seconds: int = 1) -> None:
        self._now += timedelta(seconds=seconds)

    def advance_days(self, days: int) -> None:
        self._now += timedelta(days=days)
