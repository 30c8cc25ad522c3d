"""
Mechanic Availability Domain Models (``workshop_modules.availability.models``).

Requested working intervals, their approval status, and the monthly hours
derived from approved ones.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from uuid import UUID

# A shift longer than six hours includes an unpaid 30-minute break.
BREAK_THRESHOLD_MINUTES = 360
BREAK_MINUTES = 30


class AvailabilityStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


AVAILABILITY_STATUS_VALUES: tuple[str, ...] = tuple(s.value for s in AvailabilityStatus)


@dataclass(frozen=True)
class Availability:
    """One requested working interval on one day."""
    id: UUID
    user_id: UUID
    date: date
    start_time: time
    end_time: time
    status: AvailabilityStatus
    notes: str | None = None
    approved_by: UUID | None = None
    approved_at: datetime | None = None

    @property
    def net_minutes(self) -> int:
        return net_minutes(self.start_time, self.end_time)


@dataclass(frozen=True)
class DayHours:
    date: date
    minutes: int

    @property
    def is_saturday(self) -> bool:
        return self.date.weekday() == 5


@dataclass(frozen=True)
class MechanicHours:
    """Approved working time of one mechanic over a period."""
    user_id: UUID
    days: tuple[DayHours, ...]

    @property
    def total_minutes(self) -> int:
        return sum(d.minutes for d in self.days)

    @property
    def saturday_count(self) -> int:
        return sum(1 for d in self.days if d.is_saturday)


def net_minutes(start: time, end: time) -> int:
    """Worked minutes between ``start`` and ``end``, minus the break when due."""
    duration = (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)
    if duration > BREAK_THRESHOLD_MINUTES:
        duration -= BREAK_MINUTES
    return duration
