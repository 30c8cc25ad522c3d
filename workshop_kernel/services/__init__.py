"""Services for the workshop kernel (write side)."""

from workshop_kernel.services.base import BaseService
from workshop_kernel.services.profile_service import ProfileService
from workshop_kernel.services.sequence_service import SequenceCounter, SequenceService
from workshop_kernel.services.settings_service import (
    SHOW_STOCK_WARNINGS,
    DatabaseSettingsProvider,
    InMemorySettingsProvider,
    SettingsProvider,
)
from workshop_kernel.services.workflow_executor import (
    GuardExecutor,
    TransitionResult,
    WorkflowExecutor,
)

__all__ = [
    "BaseService",
    "ProfileService",
    "SequenceCounter",
    "SequenceService",
    "SHOW_STOCK_WARNINGS",
    "SettingsProvider",
    "InMemorySettingsProvider",
    "DatabaseSettingsProvider",
    "GuardExecutor",
    "TransitionResult",
    "WorkflowExecutor",
]
