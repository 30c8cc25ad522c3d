"""
FOH Task Workflow (``workshop_modules.tasks.workflows``).

``nog_niet_gestart --start--> in_behandeling --complete--> afgerond``.
Rejection is not part of this table: it is a flag set next to the status
by ``FohTaskService.reject`` and blocks every transition afterwards.
"""

from workshop_kernel.domain.workflow import Transition, Workflow
from workshop_kernel.logging_config import get_logger
from workshop_modules.tasks.models import TASK_STATUS_VALUES, TaskStatus

logger = get_logger("modules.tasks.workflows")

TASK_WORKFLOW = Workflow(
    name="foh_task",
    description="Front-of-house task lifecycle",
    initial_state=TaskStatus.NOT_STARTED.value,
    states=TASK_STATUS_VALUES,
    terminal_states=(TaskStatus.COMPLETED.value,),
    transitions=(
        Transition(TaskStatus.NOT_STARTED.value, TaskStatus.IN_PROGRESS.value, action="start"),
        Transition(TaskStatus.IN_PROGRESS.value, TaskStatus.COMPLETED.value, action="complete"),
    ),
)

logger.info(
    "task_workflow_registered",
    extra={
        "workflow_name": TASK_WORKFLOW.name,
        "state_count": len(TASK_WORKFLOW.states),
        "transition_count": len(TASK_WORKFLOW.transitions),
    },
)
