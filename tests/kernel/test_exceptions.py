"""Tests for the typed exception hierarchy."""

import inspect

import pytest

from workshop_config.loader import ConfigError
from workshop_kernel import exceptions
from workshop_kernel.exceptions import (
    ApprovalRequiredError,
    ChecklistIncompleteError,
    InvalidTransitionError,
    PersistenceError,
    UnauthorizedActorError,
    ValidationError,
    WorkflowError,
    WorkshopKernelError,
)


def _exception_classes():
    return [
        obj for _, obj in inspect.getmembers(exceptions, inspect.isclass)
        if issubclass(obj, WorkshopKernelError)
    ]


class TestHierarchy:

    def test_every_error_derives_from_base(self):
        for cls in _exception_classes():
            assert issubclass(cls, WorkshopKernelError)

    def test_codes_are_unique(self):
        codes = [cls.code for cls in _exception_classes()] + [ConfigError.code]
        assert len(codes) == len(set(codes))

    def test_code_readable_without_instance(self):
        assert InvalidTransitionError.code == "INVALID_TRANSITION"
        assert ChecklistIncompleteError.code == "CHECKLIST_INCOMPLETE"

    @pytest.mark.parametrize(
        "cls",
        [InvalidTransitionError, ChecklistIncompleteError, ApprovalRequiredError],
    )
    def test_workflow_errors_grouped(self, cls):
        assert issubclass(cls, WorkflowError)


class TestContextAttributes:

    def test_validation_error(self):
        err = ValidationError("frame_number", "required")
        assert err.field == "frame_number"
        assert "frame_number" in str(err)

    def test_checklist_incomplete_lists_items(self):
        err = ChecklistIncompleteError("b-1", ["i-1", "i-2"])
        assert err.missing_item_ids == ["i-1", "i-2"]
        assert "2 open checklist item(s)" in str(err)

    def test_unauthorized_actor(self):
        err = UnauthorizedActorError("a-1", "delete bikes", "requires role admin")
        assert err.actor_id == "a-1"
        assert err.action == "delete bikes"

    def test_persistence_error(self):
        err = PersistenceError("finish", "UNIQUE constraint failed")
        assert err.operation == "finish"
        assert err.code == "PERSISTENCE_ERROR"
