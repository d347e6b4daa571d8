"""
Clock -- source of the pricing evaluation date.

Responsibility:
    Engines take an explicit ``as_of`` date and never read the wall clock.
    Services obtain that date from an injected ``Clock``, so rule validity
    windows can be exercised in tests by moving a ``DeterministicClock``.

Architecture position:
    Kernel > Domain.  ``SystemClock`` is the only place the package reads
    real time.

Failure modes:
    ``DeterministicClock`` rejects naive datetimes with ``ValueError``.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone, tzinfo


class Clock(ABC):
    """
    Injectable time source.

    Guarantees:
        - ``now()`` is timezone-aware.
        - ``today()`` is the calendar date of ``now()`` in the clock's own
          zone, which is the date rule windows are checked against.
    """

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock time in ``tz`` (UTC unless the business runs elsewhere)."""

    def __init__(self, tz: tzinfo = timezone.utc):
        self._tz = tz

    def now(self) -> datetime:
        return datetime.now(self._tz)


class DeterministicClock(Clock):
    """
    Clock pinned to a fixed instant, moved only by the test.

    ``now()`` keeps returning the same value until ``set_time`` or one of
    the ``advance`` methods is called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = _aware(fixed_time or datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = _aware(time)

    def advance(self, delta: timedelta) -> None:
        self._current += delta

    def advance_days(self, days: int = 1) -> None:
        """Move forward by whole days; negative values move back."""
        self.advance(timedelta(days=days))


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        raise ValueError(f"DeterministicClock needs a timezone-aware datetime, got {value!r}")
    return value
