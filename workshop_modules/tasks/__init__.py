"""
FOH Task Module (``workshop_modules.tasks``).

Front-of-house to-do items with a sequential task number, assignment to
any active staff member, a three-state workflow and a rejection side
branch.  Import the service and selectors from their own modules.
"""

from workshop_modules.tasks.models import FohTask, TaskStatus, TaskStatusCounts
from workshop_modules.tasks.workflows import TASK_WORKFLOW

__all__ = ["FohTask", "TaskStatus", "TaskStatusCounts", "TASK_WORKFLOW"]
