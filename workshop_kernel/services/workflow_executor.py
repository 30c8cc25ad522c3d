"""
Workflow executor -- evaluates a Workflow table for one entity.

Responsibility:
    Looks up the transition for (current state, action), evaluates its
    guard against a context mapping, and emits a structured
    ``workflow_transition`` log record for every outcome.  It never writes:
    the owning service applies the status change and its side effects in
    the same transaction.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping
from uuid import UUID

from workshop_kernel.domain.workflow import Guard, Transition, Workflow
from workshop_kernel.logging_config import get_logger

logger = get_logger("services.workflow_executor")

OUTCOME_APPLIED = "applied"
OUTCOME_NO_TRANSITION = "no_transition"
OUTCOME_GUARD_FAILED = "guard_failed"


@dataclass(frozen=True)
class TransitionResult:
    success: bool
    action: str
    from_state: str
    to_state: str | None = None
    transition: Transition | None = None
    failed_guard: Guard | None = None
    reason: str = ""


def _get(context: Mapping[str, Any] | Any, key: str, default: Any = None) -> Any:
    if isinstance(context, Mapping):
        return context.get(key, default)
    return getattr(context, key, default)


class GuardExecutor:
    """Holds the evaluation logic per guard name."""

    def __init__(self) -> None:
        self._evaluators: dict[str, Callable[[Any], bool]] = {}

    def register(self, guard_name: str, evaluator: Callable[[Any], bool]) -> None:
        self._evaluators[guard_name] = evaluator

    def evaluate(self, guard: Guard, context: Any = None) -> bool:
        fn = self._evaluators.get(guard.name)
        if fn is None:
            logger.warning("guard_no_evaluator", extra={"guard_name": guard.name})
            return False
        try:
            return bool(fn(context))
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "guard_evaluation_error",
                extra={"guard_name": guard.name, "error": str(e)},
            )
            return False


def _checklist_complete(context: Any) -> bool:
    return not _get(context, "open_checklist_items", ())


def default_guard_executor() -> GuardExecutor:
    ex = GuardExecutor()
    ex.register("checklist_complete", _checklist_complete)
    return ex


class WorkflowExecutor:
    def __init__(self, guard_executor: GuardExecutor | None = None):
        self._guards = guard_executor or default_guard_executor()

    def execute(
        self,
        workflow: Workflow,
        entity_id: UUID,
        current_state: str,
        action: str,
        context: Any = None,
    ) -> TransitionResult:
        t0 = time.monotonic()
        transition = workflow.find_transition(current_state, action)

        if transition is None:
            result = TransitionResult(
                success=False,
                action=action,
                from_state=current_state,
                reason=f"No transition from '{current_state}' via '{action}'",
            )
        elif transition.guard is not None and not self._guards.evaluate(
            transition.guard, context or {}
        ):
            result = TransitionResult(
                success=False,
                action=action,
                from_state=current_state,
                transition=transition,
                failed_guard=transition.guard,
                reason=f"Guard not satisfied: {transition.guard.name}",
            )
        else:
            result = TransitionResult(
                success=True,
                action=action,
                from_state=current_state,
                to_state=transition.to_state,
                transition=transition,
            )

        if result.success:
            outcome = OUTCOME_APPLIED
        elif result.failed_guard is not None:
            outcome = OUTCOME_GUARD_FAILED
        else:
            outcome = OUTCOME_NO_TRANSITION
        logger.info(
            "workflow_transition",
            extra={
                "workflow": workflow.name,
                "entity_id": str(entity_id),
                "action": action,
                "from_state": current_state,
                "to_state": result.to_state,
                "outcome": outcome,
                "reason": result.reason,
                "duration_ms": round((time.monotonic() - t0) * 1000, 3),
            },
        )
        return result
