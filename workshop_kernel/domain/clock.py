"""
Clock -- injectable time source.

Services never call ``datetime.now()`` directly; they receive a Clock so
diagnosis stamps, completion times, call history and task rejections can be
pinned in tests (warranty windows and business-hour checks depend on exact
timestamps).
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta, tzinfo


class Clock(ABC):
    """
    Abstract clock interface.

    Guarantees:
        - ``now()`` returns a timezone-aware UTC ``datetime``.
    """

    @abstractmethod
    def now(self) -> datetime:
        ...

    def now_in(self, zone: tzinfo) -> datetime:
        """Current time converted to the shop's local zone."""
        return self.now().astimezone(zone)


class SystemClock(Clock):
    """Production clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    ``now()`` returns the same value on repeated calls until ``advance()``,
    ``tick()`` or ``set_time()`` is called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)
        if self._current.tzinfo is None:
            raise ValueError("DeterministicClock requires an aware datetime")

    def now(self) -> datetime:
        return self._current.astimezone(UTC)

    def set_time(self, time: datetime) -> None:
        if time.tzinfo is None:
            raise ValueError("DeterministicClock requires an aware datetime")
        self._current = time

    def advance(self, seconds: float = 0, *, days: float = 0, hours: float = 0) -> None:
        self._current += timedelta(days=days, hours=hours, seconds=seconds)

    def tick(self) -> datetime:
        """Advance by 1 second and return the new time."""
        self.advance(1)
        return self.now()
