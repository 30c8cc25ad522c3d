"""
Inventory Ledger Module (``workshop_modules.inventory``).

Responsibility
--------------
The repair catalogue and its stock: quantities clamped at zero, stock
status per item or per group, the unlimited-stock override, and product
add/update/delete.  Import the service and selectors from their own
modules.
"""

from workshop_modules.inventory.models import (
    GroupStock,
    InventoryGroup,
    InventoryItem,
    RepairType,
    StockReport,
    StockStatus,
    StockWarning,
)

__all__ = [
    "GroupStock",
    "InventoryGroup",
    "InventoryItem",
    "RepairType",
    "StockReport",
    "StockStatus",
    "StockWarning",
]
