"""
Injectable time source.

Sync reports carry started_at/completed_at.  Services take a Clock so tests
can pin those timestamps instead of patching ``datetime``.
"""

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        """Timezone-aware current time."""
        ...


class SystemClock:
    """Wall-clock UTC time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock:
    """
    Fixed clock for tests.

    ``now()`` returns ``start`` until moved; with a non-zero ``step`` each
    call moves the clock forward by that amount after reading it, so a run's
    completed_at lands after its started_at.
    """

    DEFAULT_START = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(0)):
        self._current = start or self.DEFAULT_START
        self._step = step

    def now(self) -> datetime:
        current = self._current
        self._current += self._step
        return current

    def set_time(self, time: datetime) -> None:
        self._current = time

    def advance(self, seconds: float = 1) -> None:
        self._current += timedelta(seconds=seconds)
