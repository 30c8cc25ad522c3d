"""
FOH task read models (``workshop_modules.tasks.selectors``).

The assignee's active list, the creator's "assigned by me" list (where
rejections surface), the full overview with search, and the open-task
badge count.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import String, cast, func, or_, select

from workshop_kernel.selectors.base import BaseSelector
from workshop_modules.tasks.models import FohTask, TaskStatus, TaskStatusCounts
from workshop_modules.tasks.orm import FohTaskModel

_COMPLETED = TaskStatus.COMPLETED.value


class TaskSelector(BaseSelector):

    def get(self, task_id: UUID) -> FohTask | None:
        task = self.session.get(FohTaskModel, task_id)
        return task.to_dto() if task else None

    def active_for_assignee(self, user_id: UUID) -> list[FohTask]:
        """Tasks assigned to the user: not completed, not rejected."""
        rows = self.session.execute(
            select(FohTaskModel)
            .where(
                FohTaskModel.assigned_to == user_id,
                FohTaskModel.status != _COMPLETED,
                FohTaskModel.rejected_at.is_(None),
            )
            .order_by(FohTaskModel.task_number)
        ).scalars()
        return [t.to_dto() for t in rows]

    def assigned_by(self, user_id: UUID) -> list[FohTask]:
        """
        Unfinished tasks the user created for someone else, including
        rejected ones (with their reason).
        """
        rows = self.session.execute(
            select(FohTaskModel)
            .where(
                FohTaskModel.created_by_id == user_id,
                FohTaskModel.assigned_to.is_not(None),
                FohTaskModel.assigned_to != user_id,
                FohTaskModel.status != _COMPLETED,
            )
            .order_by(FohTaskModel.task_number)
        ).scalars()
        return [t.to_dto() for t in rows]

    def all_tasks(self, search: str | None = None, show_completed: bool = False) -> list[FohTask]:
        """
        Every task, oldest number first.  ``search`` matches title,
        description or task number (case-insensitive substring).
        """
        stmt = select(FohTaskModel)
        if not show_completed:
            stmt = stmt.where(FohTaskModel.status != _COMPLETED)
        text = (search or "").strip().lower()
        if text:
            stmt = stmt.where(
                or_(
                    func.lower(FohTaskModel.title).contains(text),
                    func.lower(func.coalesce(FohTaskModel.description, "")).contains(text),
                    cast(FohTaskModel.task_number, String).contains(text),
                )
            )
        rows = self.session.execute(stmt.order_by(FohTaskModel.task_number)).scalars()
        return [t.to_dto() for t in rows]

    def for_bike(self, bike_id: UUID) -> list[FohTask]:
        rows = self.session.execute(
            select(FohTaskModel)
            .where(FohTaskModel.bike_id == bike_id)
            .order_by(FohTaskModel.task_number)
        ).scalars()
        return [t.to_dto() for t in rows]

    def status_counts(self) -> TaskStatusCounts:
        """Counts per status; ``rejected`` counts unfinished rejected tasks."""
        per_status = dict(
            self.session.execute(
                select(FohTaskModel.status, func.count()).group_by(FohTaskModel.status)
            ).all()
        )
        rejected = self.session.execute(
            select(func.count())
            .select_from(FohTaskModel)
            .where(FohTaskModel.rejected_at.is_not(None), FohTaskModel.status != _COMPLETED)
        ).scalar_one()
        return TaskStatusCounts(
            not_started=per_status.get(TaskStatus.NOT_STARTED.value, 0),
            in_progress=per_status.get(TaskStatus.IN_PROGRESS.value, 0),
            completed=per_status.get(_COMPLETED, 0),
            rejected=rejected,
        )

    def open_task_count(self, user_id: UUID) -> int:
        """Badge count: the size of the user's active list."""
        return self.session.execute(
            select(func.count())
            .select_from(FohTaskModel)
            .where(
                FohTaskModel.assigned_to == user_id,
                FohTaskModel.status != _COMPLETED,
                FohTaskModel.rejected_at.is_(None),
            )
        ).scalar_one()
