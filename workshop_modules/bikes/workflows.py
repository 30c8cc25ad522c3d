"""
Bike Workflow (``workshop_modules.bikes.workflows``).

Responsibility
--------------
Declares the bike lifecycle as one state-machine table.  Every status change
made by ``BikeWorkflowService`` is looked up here; ``effects`` on a transition
name the side effects the service applies in the same transaction.

Architecture position
---------------------
**Modules layer** -- declarative workflow definitions.  Imports canonical
Guard, Transition, Workflow from ``workshop_kernel.domain.workflow``.

Invariants enforced
-------------------
* Every state is a ``WorkflowStatus`` value, so a transition can never
  produce a status outside the seven-value domain.
* ``afgerond`` is terminal except for ``reopen``, which the service only
  fires from table assignment.

Effects
-------
* ``stamp_diagnosis``  -- first exit from the diagnosis stages: set
  ``diagnosed_by``/``diagnosed_at`` and insert the completed Diagnose bonus
  registration (once per bike).
* ``claim_mechanic``   -- ``current_mechanic_id`` becomes the actor.
* ``clear_mechanic``   -- unset the mechanic unless it was pinned by FOH.
* ``force_complete``   -- complete every pending registration with the actor
  as mechanic.
"""

from workshop_kernel.domain.workflow import Guard, Transition, Workflow
from workshop_kernel.logging_config import get_logger
from workshop_modules.bikes.models import WORKFLOW_STATUS_VALUES, WorkflowStatus

logger = get_logger("modules.bikes.workflows")

_S = WorkflowStatus

EFFECT_STAMP_DIAGNOSIS = "stamp_diagnosis"
EFFECT_CLAIM_MECHANIC = "claim_mechanic"
EFFECT_CLEAR_MECHANIC = "clear_mechanic"
EFFECT_FORCE_COMPLETE = "force_complete"


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

CHECKLIST_COMPLETE = Guard(
    name="checklist_complete",
    description="Every active completion-checklist item is ticked for the bike",
)


# -----------------------------------------------------------------------------
# Bike Workflow
# -----------------------------------------------------------------------------

BIKE_WORKFLOW = Workflow(
    name="bike",
    description="Bike repair lifecycle from intake to pickup",
    initial_state=_S.DIAGNOSIS_NEEDED.value,
    states=WORKFLOW_STATUS_VALUES,
    terminal_states=(_S.COMPLETED.value,),
    transitions=(
        Transition(_S.DIAGNOSIS_NEEDED.value, _S.DIAGNOSING.value, action="start_diagnosis"),
        Transition(
            _S.DIAGNOSIS_NEEDED.value,
            _S.AWAITING_APPROVAL.value,
            action="complete_diagnosis",
            effects=(EFFECT_STAMP_DIAGNOSIS,),
        ),
        Transition(
            _S.DIAGNOSING.value,
            _S.AWAITING_APPROVAL.value,
            action="complete_diagnosis",
            effects=(EFFECT_STAMP_DIAGNOSIS,),
        ),
        Transition(_S.AWAITING_APPROVAL.value, _S.READY_FOR_REPAIR.value, action="approve"),
        Transition(_S.AWAITING_APPROVAL.value, _S.AWAITING_PARTS.value, action="order_parts"),
        Transition(
            _S.IN_REPAIR.value,
            _S.AWAITING_PARTS.value,
            action="await_parts",
            effects=(EFFECT_CLEAR_MECHANIC,),
        ),
        Transition(_S.AWAITING_PARTS.value, _S.READY_FOR_REPAIR.value, action="parts_arrived"),
        Transition(
            _S.READY_FOR_REPAIR.value,
            _S.IN_REPAIR.value,
            action="claim",
            effects=(EFFECT_CLAIM_MECHANIC,),
        ),
        Transition(
            _S.IN_REPAIR.value,
            _S.READY_FOR_REPAIR.value,
            action="release",
            effects=(EFFECT_CLEAR_MECHANIC,),
        ),
        Transition(
            _S.IN_REPAIR.value,
            _S.COMPLETED.value,
            action="finish",
            guard=CHECKLIST_COMPLETE,
            effects=(EFFECT_FORCE_COMPLETE,),
        ),
        Transition(
            _S.COMPLETED.value,
            _S.DIAGNOSIS_NEEDED.value,
            action="reopen",
            effects=(EFFECT_CLEAR_MECHANIC,),
        ),
    ),
)

# Actions with a dedicated service entry point (record_diagnosis, finish,
# assign_table); the generic transition() never applies them itself.
RESERVED_ACTIONS = frozenset({"complete_diagnosis", "finish", "reopen"})

logger.info(
    "bike_workflow_registered",
    extra={
        "workflow_name": BIKE_WORKFLOW.name,
        "state_count": len(BIKE_WORKFLOW.states),
        "transition_count": len(BIKE_WORKFLOW.transitions),
    },
)
