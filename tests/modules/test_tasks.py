"""Tests for front-of-house tasks: numbering, status, rejection and read models."""

from datetime import date
from uuid import uuid4

import pytest

from workshop_kernel.exceptions import (
    BikeNotFoundError,
    InactiveBikeError,
    InvalidTransitionError,
    ProfileNotFoundError,
    TaskCompletedError,
    TaskNotFoundError,
    TaskRejectedError,
    UnauthorizedActorError,
    ValidationError,
)
from workshop_modules.tasks.models import TaskStatus


@pytest.fixture
def assigned_task(task_service, foh_id, mechanic_id):
    """'Bel klant terug', created by front of house for the mechanic."""
    return task_service.create_task(
        "Bel klant terug", foh_id, description="Over de remmen", assigned_to=mechanic_id,
    )


# =============================================================================
# Creation and numbering
# =============================================================================


class TestCreate:

    def test_defaults(self, assigned_task, foh_id, mechanic_id):
        assert assigned_task.status == TaskStatus.NOT_STARTED
        assert assigned_task.created_by == foh_id
        assert assigned_task.assigned_to == mechanic_id
        assert assigned_task.is_open
        assert not assigned_task.is_rejected

    def test_numbers_increase(self, task_service, foh_id):
        first = task_service.create_task("Eén", foh_id)
        second = task_service.create_task("Twee", foh_id)
        assert second.task_number == first.task_number + 1

    def test_numbers_not_reused_after_delete(self, task_service, foh_id):
        task_service.create_task("Eén", foh_id)
        second = task_service.create_task("Twee", foh_id)
        task_service.delete_task(second.id, foh_id)

        third = task_service.create_task("Drie", foh_id)
        assert third.task_number == second.task_number + 1

    def test_title_required(self, task_service, foh_id):
        with pytest.raises(ValidationError):
            task_service.create_task("   ", foh_id)

    def test_unknown_assignee(self, task_service, tasks, foh_id):
        with pytest.raises(ProfileNotFoundError):
            task_service.create_task("Niemand", foh_id, assigned_to=uuid4())
        assert tasks.all_tasks() == []

    def test_linked_bike(self, task_service, tasks, awaiting_bike, foh_id):
        task = task_service.create_task("Onderdeel bestellen", foh_id, bike_id=awaiting_bike.id)
        assert [t.id for t in tasks.for_bike(awaiting_bike.id)] == [task.id]

    def test_unknown_bike(self, task_service, foh_id):
        with pytest.raises(BikeNotFoundError):
            task_service.create_task("Spookfiets", foh_id, bike_id=uuid4())

    def test_completed_bike_not_linkable(
        self, bike_service, task_service, awaiting_bike, checklist_item_ids, admin_id, foh_id,
    ):
        bike_service.check_all_checklist_items(awaiting_bike.id, admin_id)
        bike_service.update_table_status(awaiting_bike.id, foh_id, workflow_status="afgerond")

        with pytest.raises(InactiveBikeError):
            task_service.create_task("Te laat", foh_id, bike_id=awaiting_bike.id)


# =============================================================================
# Editing
# =============================================================================


class TestEdit:

    def test_update_fields(self, task_service, assigned_task, foh_id, second_mechanic_id):
        updated = task_service.update_task(
            assigned_task.id, foh_id,
            title="Bel klant", description=None, assigned_to=second_mechanic_id,
            deadline=date(2024, 3, 8),
        )
        assert updated.title == "Bel klant"
        assert updated.description is None
        assert updated.assigned_to == second_mechanic_id
        assert updated.deadline == date(2024, 3, 8)

    def test_untouched_fields_kept(self, task_service, assigned_task, foh_id):
        updated = task_service.update_task(assigned_task.id, foh_id, title="Nieuw")
        assert updated.description == "Over de remmen"

    def test_only_creator_or_admin_updates(self, task_service, assigned_task, admin_id, mechanic_id):
        with pytest.raises(UnauthorizedActorError):
            task_service.update_task(assigned_task.id, mechanic_id, title="Mijn taak")
        assert task_service.update_task(assigned_task.id, admin_id, title="Admin").title == "Admin"

    def test_anyone_active_reassigns(self, task_service, assigned_task, mechanic_id, second_mechanic_id):
        task = task_service.assign(assigned_task.id, second_mechanic_id, mechanic_id)
        assert task.assigned_to == second_mechanic_id
        assert task_service.assign(task.id, None, mechanic_id).assigned_to is None

    def test_notes(self, task_service, assigned_task, mechanic_id):
        assert task_service.save_notes(assigned_task.id, " klant belt terug ", mechanic_id).notes == "klant belt terug"
        assert task_service.save_notes(assigned_task.id, "", mechanic_id).notes is None

    def test_unknown_task(self, task_service, foh_id):
        with pytest.raises(TaskNotFoundError):
            task_service.save_notes(uuid4(), "x", foh_id)

    def test_only_creator_deletes(self, task_service, tasks, assigned_task, admin_id, foh_id):
        with pytest.raises(UnauthorizedActorError):
            task_service.delete_task(assigned_task.id, admin_id)

        task_service.delete_task(assigned_task.id, foh_id)
        assert tasks.get(assigned_task.id) is None


# =============================================================================
# Status
# =============================================================================


class TestStatus:

    def test_start_then_complete(self, task_service, tasks, assigned_task, mechanic_id):
        assert task_service.start(assigned_task.id, mechanic_id).status == TaskStatus.IN_PROGRESS
        done = task_service.complete(assigned_task.id, mechanic_id)

        assert done.status == TaskStatus.COMPLETED
        assert not done.is_open
        assert tasks.active_for_assignee(mechanic_id) == []

    def test_complete_before_start(self, task_service, assigned_task, mechanic_id):
        with pytest.raises(InvalidTransitionError):
            task_service.complete(assigned_task.id, mechanic_id)

    def test_only_assignee_or_admin(self, task_service, assigned_task, admin_id, second_mechanic_id):
        with pytest.raises(UnauthorizedActorError):
            task_service.start(assigned_task.id, second_mechanic_id)
        assert task_service.start(assigned_task.id, admin_id).status == TaskStatus.IN_PROGRESS

    def test_transition_logged(self, task_service, assigned_task, mechanic_id, captured_logs):
        task_service.start(assigned_task.id, mechanic_id)

        record = next(r for r in captured_logs() if r["message"] == "foh_task_transitioned")
        assert record["from_state"] == "nog_niet_gestart"
        assert record["to_state"] == "in_behandeling"


# =============================================================================
# Rejection
# =============================================================================


class TestRejection:

    def test_reject_sends_back_to_creator(self, task_service, tasks, assigned_task, foh_id, mechanic_id, clock):
        rejected = task_service.reject(assigned_task.id, "wrong bike", mechanic_id)

        assert rejected.rejected_at == clock.now()
        assert rejected.rejection_reason == "wrong bike"
        assert rejected.status == TaskStatus.NOT_STARTED
        assert tasks.active_for_assignee(mechanic_id) == []
        assert tasks.open_task_count(mechanic_id) == 0

        [returned] = tasks.assigned_by(foh_id)
        assert returned.id == assigned_task.id
        assert returned.rejection_reason == "wrong bike"

    def test_reason_required(self, task_service, assigned_task, mechanic_id):
        with pytest.raises(ValidationError):
            task_service.reject(assigned_task.id, "  ", mechanic_id)

    def test_rejected_task_is_frozen(self, task_service, assigned_task, mechanic_id):
        task_service.reject(assigned_task.id, "wrong bike", mechanic_id)

        with pytest.raises(TaskRejectedError):
            task_service.reject(assigned_task.id, "again", mechanic_id)
        with pytest.raises(TaskRejectedError):
            task_service.start(assigned_task.id, mechanic_id)

    def test_completed_task_cannot_be_rejected(self, task_service, assigned_task, mechanic_id):
        task_service.start(assigned_task.id, mechanic_id)
        task_service.complete(assigned_task.id, mechanic_id)

        with pytest.raises(TaskCompletedError):
            task_service.reject(assigned_task.id, "too late", mechanic_id)

    def test_only_assignee_or_admin_rejects(self, task_service, assigned_task, foh_id):
        with pytest.raises(UnauthorizedActorError):
            task_service.reject(assigned_task.id, "not mine", foh_id)


# =============================================================================
# Read models
# =============================================================================


class TestTaskSelector:

    def test_search(self, task_service, tasks, assigned_task, foh_id):
        other = task_service.create_task("Fiets wassen", foh_id)

        assert [t.id for t in tasks.all_tasks(search="REMMEN")] == [assigned_task.id]
        assert [t.id for t in tasks.all_tasks(search="wassen")] == [other.id]
        assert [t.id for t in tasks.all_tasks(search=str(other.task_number))] == [other.id]

    def test_completed_hidden_by_default(self, task_service, tasks, assigned_task, mechanic_id):
        task_service.start(assigned_task.id, mechanic_id)
        task_service.complete(assigned_task.id, mechanic_id)

        assert tasks.all_tasks() == []
        assert [t.id for t in tasks.all_tasks(show_completed=True)] == [assigned_task.id]

    def test_assigned_by_excludes_own_and_unassigned(self, task_service, tasks, assigned_task, foh_id):
        task_service.create_task("Zelf doen", foh_id, assigned_to=foh_id)
        task_service.create_task("Nog niemand", foh_id)

        assert [t.id for t in tasks.assigned_by(foh_id)] == [assigned_task.id]

    def test_status_counts(self, task_service, tasks, assigned_task, foh_id, mechanic_id):
        started = task_service.create_task("Twee", foh_id, assigned_to=mechanic_id)
        task_service.start(started.id, mechanic_id)
        done = task_service.create_task("Drie", foh_id, assigned_to=mechanic_id)
        task_service.start(done.id, mechanic_id)
        task_service.complete(done.id, mechanic_id)
        task_service.reject(assigned_task.id, "wrong bike", mechanic_id)

        counts = tasks.status_counts()
        assert (counts.not_started, counts.in_progress, counts.completed, counts.rejected) == (1, 1, 1, 1)
        assert counts.total == 3
        assert tasks.open_task_count(mechanic_id) == 1
