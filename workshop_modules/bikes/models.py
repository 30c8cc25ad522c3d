"""
Bike Workflow Domain Models (``workshop_modules.bikes.models``).

Responsibility
--------------
Frozen value objects for the bike lifecycle: bikes, work registrations,
checklist state, comments, customer call history, and the derived
analytics records (warranty cases, mechanic scores).

Architecture
------------
Layer: **Modules** -- pure domain data structures.  No database identity
beyond the ids they carry, no I/O.  Used as DTOs between services,
selectors and callers.

Invariants
----------
- ``Bike.workflow_status`` is always a ``WorkflowStatus`` member.
- Points and prices are ``Decimal``.
- A sales bike shows a customer price of zero; the catalogue price is kept
  for accounting.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

# Business constants
DIAGNOSIS_REPAIR_NAME = "Diagnose"
DIAGNOSIS_BONUS_POINTS = Decimal("0.5")
WARRANTY_WINDOW_DAYS = 180


class BikeModelCode(Enum):
    """The bike models the workshop services."""
    S1 = "S1"
    S2 = "S2"
    S3 = "S3"
    S5 = "S5"
    S6 = "S6"
    X1 = "X1"
    X2 = "X2"
    X3 = "X3"
    X5 = "X5"
    A5 = "A5"


class WorkflowStatus(Enum):
    """Stage of a bike in the repair pipeline."""
    DIAGNOSIS_NEEDED = "diagnose_nodig"
    DIAGNOSING = "diagnose_bezig"
    AWAITING_APPROVAL = "wacht_op_akkoord"
    AWAITING_PARTS = "wacht_op_onderdelen"
    READY_FOR_REPAIR = "klaar_voor_reparatie"
    IN_REPAIR = "in_reparatie"
    COMPLETED = "afgerond"

    @classmethod
    def parse(cls, value: "WorkflowStatus | str") -> "WorkflowStatus":
        if isinstance(value, cls):
            return value
        return cls(value)


WORKFLOW_STATUS_VALUES: tuple[str, ...] = tuple(s.value for s in WorkflowStatus)

# Statuses in which diagnosed repairs may be completed.
REPAIRABLE_STATUSES = frozenset({WorkflowStatus.READY_FOR_REPAIR, WorkflowStatus.IN_REPAIR})

# Statuses in which the diagnosis is still open.
DIAGNOSIS_STATUSES = frozenset({WorkflowStatus.DIAGNOSIS_NEEDED, WorkflowStatus.DIAGNOSING})


@dataclass(frozen=True)
class Bike:
    """A physical bike going through the workshop."""
    id: UUID
    frame_number: str
    model: BikeModelCode
    workflow_status: WorkflowStatus
    is_sales_bike: bool = False
    table_number: str | None = None
    current_mechanic_id: UUID | None = None
    mechanic_pinned: bool = False
    diagnosed_by: UUID | None = None
    diagnosed_at: datetime | None = None
    customer_phone: str | None = None
    call_status_id: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.workflow_status != WorkflowStatus.COMPLETED

    @property
    def is_diagnosed(self) -> bool:
        return self.diagnosed_by is not None


@dataclass(frozen=True)
class WorkRegistration:
    """One repair-type instance applied to one bike."""
    id: UUID
    bike_id: UUID
    repair_type_id: UUID
    completed: bool
    mechanic_id: UUID | None = None
    completed_at: datetime | None = None
    last_modified_by: UUID | None = None
    last_modified_at: datetime | None = None
    repair_type_name: str | None = None
    price: Decimal = Decimal("0")
    customer_price: Decimal = Decimal("0")
    points: Decimal = Decimal("0")
    created_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return not self.completed


@dataclass(frozen=True)
class ChecklistItem:
    id: UUID
    name: str
    sort_order: int = 0
    is_active: bool = True
    description: str | None = None


@dataclass(frozen=True)
class ChecklistEntry:
    """An active checklist item and whether it is ticked for a bike."""
    item: ChecklistItem
    completed: bool
    completed_by: UUID | None = None
    completed_at: datetime | None = None


@dataclass(frozen=True)
class ChecklistState:
    bike_id: UUID
    entries: tuple[ChecklistEntry, ...]

    @property
    def open_item_ids(self) -> tuple[UUID, ...]:
        return tuple(e.item.id for e in self.entries if not e.completed)

    @property
    def is_complete(self) -> bool:
        return not self.open_item_ids


@dataclass(frozen=True)
class BikeComment:
    id: UUID
    bike_id: UUID
    author_id: UUID
    content: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class CallRecord:
    """One customer call made about a bike."""
    id: UUID
    bike_id: UUID
    called_by: UUID
    called_at: datetime
    notes: str | None = None


@dataclass(frozen=True)
class CallStatus:
    """A front-of-house call status label (colour-coded on the table grid)."""
    id: UUID
    name: str
    color: str
    sort_order: int = 0
    is_active: bool = True
    name_en: str | None = None


@dataclass(frozen=True)
class TableSlot:
    """A workshop table and the active bikes on it."""
    table_number: str
    bikes: tuple[Bike, ...] = ()

    @property
    def is_free(self) -> bool:
        return not self.bikes


@dataclass(frozen=True)
class CompletedRepair:
    """Input row for warranty detection and scoring."""
    registration_id: UUID
    bike_id: UUID
    repair_type_id: UUID
    completed_at: datetime
    mechanic_id: UUID | None = None
    repair_type_name: str = ""
    frame_number: str = ""
    points: Decimal = Decimal("0")


@dataclass(frozen=True)
class WarrantyCase:
    """A repeat repair of the same type on the same bike inside the window."""
    registration_id: UUID
    bike_id: UUID
    repair_type_id: UUID
    completed_at: datetime
    previous_registration_id: UUID
    previous_completed_at: datetime
    days_since_previous: int
    mechanic_id: UUID | None = None
    previous_mechanic_id: UUID | None = None
    repair_type_name: str = ""
    frame_number: str = ""


@dataclass(frozen=True)
class RepairTypeCount:
    name: str
    count: int


@dataclass(frozen=True)
class MechanicWarrantyStats:
    mechanic_id: UUID
    total_cases: int
    repair_types: tuple[RepairTypeCount, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MechanicScore:
    """Completed repairs and earned points per mechanic."""
    mechanic_id: UUID
    repair_count: int
    points: Decimal
