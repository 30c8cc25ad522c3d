"""
Bike Workflow Module (``workshop_modules.bikes``).

Responsibility
--------------
The bike lifecycle: intake and diagnosis, customer approval, claiming and
releasing, repair completion, the completion checklist, table and call
management on the front-of-house grid, and warranty/scoring analytics.

Architecture position
---------------------
**Modules layer** -- ``models`` (DTOs), ``orm`` (tables), ``workflows``
(the ``BIKE_WORKFLOW`` table), ``service`` (writes), ``selectors`` (reads)
and ``helpers`` (pure derivations).  Import the service and selectors from
their own modules.
"""

from workshop_modules.bikes.models import (
    DIAGNOSIS_BONUS_POINTS,
    DIAGNOSIS_REPAIR_NAME,
    WARRANTY_WINDOW_DAYS,
    Bike,
    BikeModelCode,
    WarrantyCase,
    WorkflowStatus,
    WorkRegistration,
)
from workshop_modules.bikes.workflows import BIKE_WORKFLOW

__all__ = [
    "DIAGNOSIS_BONUS_POINTS",
    "DIAGNOSIS_REPAIR_NAME",
    "WARRANTY_WINDOW_DAYS",
    "Bike",
    "BikeModelCode",
    "WarrantyCase",
    "WorkflowStatus",
    "WorkRegistration",
    "BIKE_WORKFLOW",
]
