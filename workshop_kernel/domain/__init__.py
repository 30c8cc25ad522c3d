"""
Pure domain layer.

Value objects and in-process helpers with no ORM or database dependency.
"""

from workshop_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from workshop_kernel.domain.debounce import DEFAULT_DEBOUNCE_SECONDS, Debouncer
from workshop_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "Debouncer",
    "DEFAULT_DEBOUNCE_SECONDS",
    "Guard",
    "Transition",
    "Workflow",
]
