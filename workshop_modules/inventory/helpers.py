"""
Inventory Pure Functions (``workshop_modules.inventory.helpers``).

Responsibility
--------------
Stateless stock arithmetic: the clamp-at-zero floor, status derivation,
group aggregation, and the effective stock report for a single item.

Architecture
------------
Layer: **Modules** -- pure helper functions.  No I/O, no session, no clock.

Invariants
----------
- ``clamp_quantity`` never returns a negative number, whatever the input.
- Status is ``out`` at zero, ``low`` while ``0 < quantity <= min level``,
  ``ok`` above it.
- Group totals include only items in the group that are not unlimited.
"""

from __future__ import annotations

from typing import Iterable, Mapping
from uuid import UUID

from workshop_modules.inventory.models import (
    GroupStock,
    InventoryGroup,
    InventoryItem,
    StockReport,
    StockStatus,
)


def clamp_quantity(value: int) -> int:
    """Floor a requested stock quantity at zero."""
    return max(0, int(value))


def stock_status(quantity: int, min_stock_level: int) -> StockStatus:
    """
    Derive a status from an effective quantity and its threshold.

    Preconditions:
        - ``quantity >= 0``.
    """
    if quantity < 0:
        raise ValueError("quantity cannot be negative")
    if quantity == 0:
        return StockStatus.OUT
    if quantity <= min_stock_level:
        return StockStatus.LOW
    return StockStatus.OK


def group_total(items: Iterable[InventoryItem], group_id: UUID) -> int:
    """Sum of quantities of the non-unlimited items in ``group_id``."""
    return sum(
        item.quantity
        for item in items
        if item.group_id == group_id and not item.unlimited_stock
    )


def group_stock(group: InventoryGroup, items: Iterable[InventoryItem]) -> GroupStock:
    members = [i for i in items if i.group_id == group.id]
    total = group_total(members, group.id)
    return GroupStock(
        group_id=group.id,
        name=group.name,
        total_quantity=total,
        min_stock_level=group.min_stock_level,
        status=stock_status(total, group.min_stock_level),
        member_ids=tuple(i.id for i in members),
    )


def effective_stock(
    item: InventoryItem,
    items: Iterable[InventoryItem],
    groups: Mapping[UUID, InventoryGroup],
    name: str = "",
) -> StockReport:
    """
    Build the stock report for ``item``.

    Unlimited items report ``StockStatus.UNLIMITED`` regardless of quantity.
    A grouped item reports the group's total against the group's threshold;
    its own ``min_stock_level`` is ignored.  An item pointing at a group that
    no longer exists is treated as ungrouped.
    """
    if item.unlimited_stock:
        return StockReport(
            item_id=item.id,
            repair_type_id=item.repair_type_id,
            name=name,
            quantity=item.quantity,
            effective_quantity=None,
            threshold=item.min_stock_level,
            status=StockStatus.UNLIMITED,
            group_id=item.group_id,
            group_name=groups[item.group_id].name if item.group_id in groups else None,
        )

    group = groups.get(item.group_id) if item.group_id is not None else None
    if group is not None:
        total = group_total(items, group.id)
        return StockReport(
            item_id=item.id,
            repair_type_id=item.repair_type_id,
            name=name,
            quantity=item.quantity,
            effective_quantity=total,
            threshold=group.min_stock_level,
            status=stock_status(total, group.min_stock_level),
            group_id=group.id,
            group_name=group.name,
        )

    return StockReport(
        item_id=item.id,
        repair_type_id=item.repair_type_id,
        name=name,
        quantity=item.quantity,
        effective_quantity=item.quantity,
        threshold=item.min_stock_level,
        status=stock_status(item.quantity, item.min_stock_level),
    )
