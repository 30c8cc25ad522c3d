"""
Module: workshop_modules.tasks.orm
Responsibility: SQLAlchemy ORM persistence for front-of-house tasks.

Architecture position: Modules > Tasks > ORM.  Inherits from TrackedBase;
    ``created_by_id`` is the task's creator.

Invariants enforced:
    - task_number is unique (uq_foh_task_number) and only ever assigned from
      the ``foh_task`` sequence counter.
    - status is one of the three TaskStatus values.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from workshop_kernel.db.base import TrackedBase
from workshop_modules.tasks.models import TASK_STATUS_VALUES


class FohTaskModel(TrackedBase):
    """
    ORM model for a front-of-house task.

    Maps to: workshop_modules.tasks.models.FohTask (frozen dataclass).
    """

    __tablename__ = "foh_tasks"

    __table_args__ = (
        UniqueConstraint("task_number", name="uq_foh_task_number"),
        CheckConstraint(
            "status IN ({})".format(", ".join(f"'{v}'" for v in TASK_STATUS_VALUES)),
            name="ck_foh_task_status",
        ),
        Index("idx_foh_task_assignee", "assigned_to", "status"),
        Index("idx_foh_task_creator", "created_by_id"),
    )

    task_number: Mapped[int] = mapped_column(Integer)
    title: Mapped[str] = mapped_column(String(300))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(50), default="nog_niet_gestart")
    assigned_to: Mapped[UUID | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    bike_id: Mapped[UUID | None] = mapped_column(ForeignKey("bikes.id"), nullable=True)
    deadline: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self):
        from workshop_modules.tasks.models import FohTask, TaskStatus
        return FohTask(
            id=self.id,
            task_number=self.task_number,
            title=self.title,
            status=TaskStatus(self.status),
            created_by=self.created_by_id,
            description=self.description,
            assigned_to=self.assigned_to,
            bike_id=self.bike_id,
            deadline=self.deadline,
            notes=self.notes,
            rejected_at=self.rejected_at,
            rejection_reason=self.rejection_reason,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def __repr__(self) -> str:
        return f"<FohTaskModel #{self.task_number} {self.title!r} status={self.status}>"
