"""
FOH Task Service (``workshop_modules.tasks.service``).

Responsibility
--------------
Creates, edits, assigns, moves, rejects and deletes front-of-house tasks.

Architecture position
---------------------
**Modules layer** -- service facade.  Status changes are looked up in
``TASK_WORKFLOW`` through the kernel ``WorkflowExecutor``; task numbers come
from the kernel ``SequenceService``.

Invariants enforced
-------------------
* ``task_number`` values are strictly increasing and never reused (the
  counter is never recomputed from existing rows).
* Only the assignee or an admin moves a task; only the creator deletes it;
  the creator or an admin edits it.
* A rejected task keeps its status and cannot move any more.
* Each public method owns its transaction boundary.
"""

from __future__ import annotations

from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from workshop_kernel.domain.clock import Clock
from workshop_kernel.exceptions import (
    BikeNotFoundError,
    InactiveBikeError,
    InvalidTransitionError,
    TaskCompletedError,
    TaskNotFoundError,
    TaskRejectedError,
    UnauthorizedActorError,
    ValidationError,
)
from workshop_kernel.logging_config import LogContext, get_logger
from workshop_kernel.services.base import BaseService
from workshop_kernel.services.profile_service import ProfileService
from workshop_kernel.services.sequence_service import SequenceService
from workshop_kernel.services.workflow_executor import WorkflowExecutor
from workshop_modules.bikes.models import WorkflowStatus
from workshop_modules.bikes.orm import BikeModel
from workshop_modules.tasks.models import FohTask, TaskStatus
from workshop_modules.tasks.orm import FohTaskModel
from workshop_modules.tasks.workflows import TASK_WORKFLOW

logger = get_logger("modules.tasks.service")

_UNSET: Any = object()


def _clean_title(title: str | None) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("title", "required")
    return cleaned


def _clean_optional(text: str | None) -> str | None:
    if text is None:
        return None
    cleaned = text.strip()
    return cleaned or None


class FohTaskService(BaseService):
    """
    Writes to front-of-house tasks.

    Transaction boundary: commits on success, rolls back on failure.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auto_commit: bool = True,
        executor: WorkflowExecutor | None = None,
    ):
        super().__init__(session, clock, auto_commit)
        self._profiles = ProfileService(session)
        self._sequences = SequenceService(session)
        self._executor = executor or WorkflowExecutor()

    # -------------------------------------------------------------------------
    # Lookups and permission checks
    # -------------------------------------------------------------------------

    def _task(self, task_id: UUID) -> FohTaskModel:
        task = self.session.get(FohTaskModel, task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def _check_bike(self, bike_id: UUID | None) -> None:
        if bike_id is None:
            return
        bike = self.session.get(BikeModel, bike_id)
        if bike is None:
            raise BikeNotFoundError(bike_id)
        if bike.workflow_status == WorkflowStatus.COMPLETED.value:
            raise InactiveBikeError(bike_id)

    def _check_assignee(self, assignee_id: UUID | None) -> None:
        if assignee_id is not None:
            self._profiles.require_active(assignee_id)

    def _require_creator_or_admin(self, task: FohTaskModel, actor_id: UUID, action: str) -> None:
        if task.created_by_id != actor_id and not self._profiles.is_admin(actor_id):
            raise UnauthorizedActorError(actor_id, action, "only the creator or an admin")

    def _require_assignee_or_admin(self, task: FohTaskModel, actor_id: UUID, action: str) -> None:
        if task.assigned_to != actor_id and not self._profiles.is_admin(actor_id):
            raise UnauthorizedActorError(actor_id, action, "only the assignee or an admin")

    # -------------------------------------------------------------------------
    # Create / edit
    # -------------------------------------------------------------------------

    def create_task(
        self,
        title: str,
        actor_id: UUID,
        *,
        description: str | None = None,
        assigned_to: UUID | None = None,
        bike_id: UUID | None = None,
        deadline: date | None = None,
        notes: str | None = None,
    ) -> FohTask:
        """
        Create a task with the next task number.

        The number is allocated inside this transaction; if the insert
        fails the allocation rolls back with it.
        """
        clean_title = _clean_title(title)
        with self._unit_of_work("create_task", actor_id):
            self._profiles.require_active(actor_id)
            self._check_assignee(assigned_to)
            self._check_bike(bike_id)

            number = self._sequences.next_value(SequenceService.FOH_TASK)
            task = FohTaskModel(
                task_number=number,
                title=clean_title,
                description=_clean_optional(description),
                status=TASK_WORKFLOW.initial_state,
                assigned_to=assigned_to,
                bike_id=bike_id,
                deadline=deadline,
                notes=_clean_optional(notes),
                created_by_id=actor_id,
            )
            self.session.add(task)
            self.session.flush()
            logger.info(
                "foh_task_created",
                extra={
                    "task_id": str(task.id),
                    "task_number": number,
                    "assigned_to": str(assigned_to) if assigned_to else None,
                    "bike_id": str(bike_id) if bike_id else None,
                },
            )
            return task.to_dto()

    def update_task(
        self,
        task_id: UUID,
        actor_id: UUID,
        *,
        title: str = _UNSET,
        description: str | None = _UNSET,
        assigned_to: UUID | None = _UNSET,
        bike_id: UUID | None = _UNSET,
        deadline: date | None = _UNSET,
    ) -> FohTask:
        """Edit the fields passed; ``None`` clears an optional field."""
        with self._unit_of_work("update_task", actor_id), LogContext.bind(task_id=task_id):
            task = self._task(task_id)
            self._require_creator_or_admin(task, actor_id, "update task")
            changed = []
            if title is not _UNSET:
                task.title = _clean_title(title)
                changed.append("title")
            if description is not _UNSET:
                task.description = _clean_optional(description)
                changed.append("description")
            if assigned_to is not _UNSET:
                self._check_assignee(assigned_to)
                task.assigned_to = assigned_to
                changed.append("assigned_to")
            if bike_id is not _UNSET:
                self._check_bike(bike_id)
                task.bike_id = bike_id
                changed.append("bike_id")
            if deadline is not _UNSET:
                task.deadline = deadline
                changed.append("deadline")
            task.updated_by_id = actor_id
            self.session.flush()
            logger.info(
                "foh_task_updated",
                extra={"task_id": str(task.id), "fields": changed},
            )
            return task.to_dto()

    def assign(self, task_id: UUID, assignee_id: UUID | None, actor_id: UUID) -> FohTask:
        """Assign to any active profile, or to nobody."""
        with self._unit_of_work("assign_task", actor_id), LogContext.bind(task_id=task_id):
            self._profiles.require_active(actor_id)
            task = self._task(task_id)
            self._check_assignee(assignee_id)
            task.assigned_to = assignee_id
            task.updated_by_id = actor_id
            self.session.flush()
            logger.info(
                "foh_task_assigned",
                extra={
                    "task_id": str(task.id),
                    "assigned_to": str(assignee_id) if assignee_id else None,
                },
            )
            return task.to_dto()

    def save_notes(self, task_id: UUID, notes: str | None, actor_id: UUID) -> FohTask:
        with self._unit_of_work("save_task_notes", actor_id), LogContext.bind(task_id=task_id):
            self._profiles.require_active(actor_id)
            task = self._task(task_id)
            task.notes = _clean_optional(notes)
            task.updated_by_id = actor_id
            self.session.flush()
            logger.info("foh_task_notes_saved", extra={"task_id": str(task.id)})
            return task.to_dto()

    # -------------------------------------------------------------------------
    # Status and rejection
    # -------------------------------------------------------------------------

    def change_status(self, task_id: UUID, action: str, actor_id: UUID) -> FohTask:
        """Apply a ``TASK_WORKFLOW`` action (``start`` or ``complete``)."""
        with self._unit_of_work(f"task_transition:{action}", actor_id), LogContext.bind(task_id=task_id):
            task = self._task(task_id)
            self._require_assignee_or_admin(task, actor_id, "change task status")
            if task.rejected_at is not None:
                raise TaskRejectedError(task_id)
            result = self._executor.execute(TASK_WORKFLOW, task.id, task.status, action)
            if not result.success:
                raise InvalidTransitionError(TASK_WORKFLOW.name, task.id, task.status, action)
            task.status = result.to_state
            task.updated_by_id = actor_id
            self.session.flush()
            logger.info(
                "foh_task_transitioned",
                extra={
                    "task_id": str(task.id),
                    "task_number": task.task_number,
                    "from_state": result.from_state,
                    "to_state": result.to_state,
                },
            )
            return task.to_dto()

    def start(self, task_id: UUID, actor_id: UUID) -> FohTask:
        return self.change_status(task_id, "start", actor_id)

    def complete(self, task_id: UUID, actor_id: UUID) -> FohTask:
        return self.change_status(task_id, "complete", actor_id)

    def reject(self, task_id: UUID, reason: str, actor_id: UUID) -> FohTask:
        """
        Send a task back to its creator with a reason.

        The status is left as it is; the task leaves the assignee's active
        list and shows the reason on the creator's side.
        """
        clean_reason = (reason or "").strip()
        if not clean_reason:
            raise ValidationError("rejection_reason", "required")
        with self._unit_of_work("reject_task", actor_id), LogContext.bind(task_id=task_id):
            task = self._task(task_id)
            self._require_assignee_or_admin(task, actor_id, "reject task")
            if task.status == TaskStatus.COMPLETED.value:
                raise TaskCompletedError(task_id)
            if task.rejected_at is not None:
                raise TaskRejectedError(task_id)
            task.rejected_at = self.clock.now()
            task.rejection_reason = clean_reason
            task.updated_by_id = actor_id
            self.session.flush()
            logger.info(
                "foh_task_rejected",
                extra={"task_id": str(task.id), "task_number": task.task_number},
            )
            return task.to_dto()

    def delete_task(self, task_id: UUID, actor_id: UUID) -> None:
        """Only the creator deletes.  The task number is not handed out again."""
        with self._unit_of_work("delete_task", actor_id), LogContext.bind(task_id=task_id):
            task = self._task(task_id)
            if task.created_by_id != actor_id:
                raise UnauthorizedActorError(actor_id, "delete task", "only the creator")
            number = task.task_number
            self.session.delete(task)
            self.session.flush()
            logger.info(
                "foh_task_deleted",
                extra={"task_id": str(task_id), "task_number": number},
            )
