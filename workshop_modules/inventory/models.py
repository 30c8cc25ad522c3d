"""
Inventory Domain Models (``workshop_modules.inventory.models``).

Responsibility
--------------
Frozen value objects for the repair catalogue and the stock ledger: repair
types (products), inventory items, inventory groups, and the derived stock
reports and warnings handed to the presentation layer.

Invariants
----------
- ``InventoryItem.quantity`` is never negative.
- Prices and points are ``Decimal`` -- never ``float``.
- A grouped item's reported status comes from its group, never from its own
  ``min_stock_level``.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from uuid import UUID


class StockStatus(Enum):
    """Derived stock state of an item or group."""
    OK = "ok"
    LOW = "low"
    OUT = "out"
    UNLIMITED = "unlimited"


@dataclass(frozen=True)
class RepairType:
    """A catalogue entry: one kind of repair a mechanic can perform."""
    id: UUID
    name: str
    price: Decimal
    points: Decimal
    description: str | None = None
    # Empty means the repair applies to every bike model.
    models: tuple[str, ...] = ()

    def applies_to(self, model: str) -> bool:
        return not self.models or model in self.models


@dataclass(frozen=True)
class InventoryItem:
    """Stock record for one repair type."""
    id: UUID
    repair_type_id: UUID
    quantity: int
    min_stock_level: int
    purchase_price: Decimal = Decimal("0")
    unlimited_stock: bool = False
    group_id: UUID | None = None

    def __post_init__(self):
        if self.quantity < 0:
            raise ValueError("quantity cannot be negative")


@dataclass(frozen=True)
class InventoryGroup:
    """Items sharing one physical stock (e.g. the same tube in two sizes)."""
    id: UUID
    name: str
    min_stock_level: int


@dataclass(frozen=True)
class StockReport:
    """Stock state as shown for one item."""
    item_id: UUID
    repair_type_id: UUID
    name: str
    quantity: int
    effective_quantity: int | None
    threshold: int
    status: StockStatus
    group_id: UUID | None = None
    group_name: str | None = None


@dataclass(frozen=True)
class StockWarning:
    """A low/out-of-stock notice for a repair about to be registered."""
    repair_type_id: UUID
    name: str
    status: StockStatus
    effective_quantity: int


@dataclass(frozen=True)
class GroupStock:
    """Aggregate stock for an inventory group."""
    group_id: UUID
    name: str
    total_quantity: int
    min_stock_level: int
    status: StockStatus
    member_ids: tuple[UUID, ...] = field(default_factory=tuple)
