"""
FOH Task Domain Models (``workshop_modules.tasks.models``).

Frozen value objects for front-of-house to-do items.  A rejection is a side
branch recorded next to the status, not a status of its own.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from uuid import UUID


class TaskStatus(Enum):
    NOT_STARTED = "nog_niet_gestart"
    IN_PROGRESS = "in_behandeling"
    COMPLETED = "afgerond"


TASK_STATUS_VALUES: tuple[str, ...] = tuple(s.value for s in TaskStatus)


@dataclass(frozen=True)
class FohTask:
    """A front-of-house task with its sequential number."""
    id: UUID
    task_number: int
    title: str
    status: TaskStatus
    created_by: UUID
    description: str | None = None
    assigned_to: UUID | None = None
    bike_id: UUID | None = None
    deadline: date | None = None
    notes: str | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_rejected(self) -> bool:
        return self.rejected_at is not None

    @property
    def is_open(self) -> bool:
        """Counts against the assignee: not completed and not rejected."""
        return self.status != TaskStatus.COMPLETED and not self.is_rejected


@dataclass(frozen=True)
class TaskStatusCounts:
    not_started: int = 0
    in_progress: int = 0
    completed: int = 0
    rejected: int = 0

    @property
    def total(self) -> int:
        return self.not_started + self.in_progress + self.completed
