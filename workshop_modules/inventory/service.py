"""
Inventory Ledger Service (``workshop_modules.inventory.service``).

Responsibility
--------------
All writes to the repair catalogue and stock ledger: relative and absolute
quantity edits (clamped at zero), thresholds, purchase prices, the
unlimited-stock switch, inventory groups, product add/update, cascade
product delete, and stock consumption when a repair is completed.

Invariants
----------
- Stored quantity is never negative: every mutation goes through
  ``clamp_quantity``.
- Unlimited items are never decremented by consumption.
- Every write except ``consume`` requires an active admin; consumption runs
  as whoever completed the repair.
- Each public method owns its transaction boundary (commit on success,
  rollback on failure) unless constructed with ``auto_commit=False``, in
  which case it only flushes and the caller commits.
- Product delete removes, in order, the inventory row, the work
  registrations of that repair type, the model mappings and the repair type,
  all in one transaction.

Usage::

    ledger = InventoryLedgerService(session, clock)
    ledger.adjust_quantity(item_id, -1, actor_id)
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from decimal import Decimal
from typing import Callable, Iterable
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from workshop_kernel.db.types import to_decimal
from workshop_kernel.domain.clock import Clock
from workshop_kernel.domain.debounce import Debouncer
from workshop_kernel.exceptions import (
    DuplicateRepairTypeError,
    InventoryGroupNotFoundError,
    InventoryItemNotFoundError,
    RepairTypeNotFoundError,
    ValidationError,
)
from workshop_kernel.logging_config import get_logger
from workshop_kernel.models.profile import ProfileRole
from workshop_kernel.services.base import BaseService
from workshop_kernel.services.profile_service import ProfileService
from workshop_modules.bikes.models import BikeModelCode
from workshop_modules.bikes.orm import WorkRegistrationModel
from workshop_modules.inventory.helpers import clamp_quantity
from workshop_modules.inventory.models import InventoryGroup, InventoryItem, RepairType
from workshop_modules.inventory.orm import (
    InventoryGroupModel,
    InventoryItemModel,
    RepairTypeModel,
    RepairTypeModelMapping,
)

logger = get_logger("modules.inventory.service")

DEFAULT_MIN_STOCK_LEVEL = 5
DEFAULT_POINTS = Decimal("1")


def _validate_models(models: Iterable[str]) -> tuple[str, ...]:
    valid = {m.value for m in BikeModelCode}
    result = tuple(dict.fromkeys(str(m) for m in models))
    unknown = [m for m in result if m not in valid]
    if unknown:
        raise ValidationError("models", f"unknown bike model(s): {', '.join(unknown)}")
    return result


class InventoryLedgerService(BaseService):
    """
    Writes to the repair catalogue and stock ledger.

    Transaction boundary: commits on success, rolls back on failure
    (flush-only with ``auto_commit=False``).
    """

    def __init__(self, session: Session, clock: Clock | None = None, auto_commit: bool = True):
        super().__init__(session, clock, auto_commit)
        self._profiles = ProfileService(session)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def _item(self, item_id: UUID) -> InventoryItemModel:
        item = self.session.get(InventoryItemModel, item_id)
        if item is None:
            raise InventoryItemNotFoundError(item_id)
        return item

    def _group(self, group_id: UUID) -> InventoryGroupModel:
        group = self.session.get(InventoryGroupModel, group_id)
        if group is None:
            raise InventoryGroupNotFoundError(group_id)
        return group

    def _repair_type(self, repair_type_id: UUID) -> RepairTypeModel:
        rt = self.session.get(RepairTypeModel, repair_type_id)
        if rt is None:
            raise RepairTypeNotFoundError(repair_type_id)
        return rt

    def _item_for_repair_type(self, repair_type_id: UUID) -> InventoryItemModel | None:
        return self.session.execute(
            select(InventoryItemModel).where(InventoryItemModel.repair_type_id == repair_type_id)
        ).scalar_one_or_none()

    def _require_admin(self, actor_id: UUID) -> None:
        self._profiles.require_role(actor_id, "manage inventory", ProfileRole.ADMIN)

    def _touch(self, row, actor_id: UUID) -> None:
        row.updated_by_id = actor_id

    # -------------------------------------------------------------------------
    # Quantity
    # -------------------------------------------------------------------------

    def adjust_quantity(self, item_id: UUID, delta: int, actor_id: UUID) -> InventoryItem:
        """Relative edit (the +1/-1 buttons).  The result is floored at zero."""
        with self._unit_of_work("adjust_quantity", actor_id):
            self._require_admin(actor_id)
            item = self._item(item_id)
            before = item.quantity
            item.quantity = clamp_quantity(before + int(delta))
            self._touch(item, actor_id)
            self.session.flush()
            logger.info(
                "inventory_quantity_adjusted",
                extra={
                    "item_id": str(item_id),
                    "delta": int(delta),
                    "before": before,
                    "after": item.quantity,
                    "clamped": before + int(delta) < 0,
                },
            )
            return item.to_dto()

    def set_quantity(self, item_id: UUID, value: int, actor_id: UUID) -> InventoryItem:
        """Absolute edit (direct field entry).  Negative input stores zero."""
        with self._unit_of_work("set_quantity", actor_id):
            self._require_admin(actor_id)
            item = self._item(item_id)
            before = item.quantity
            item.quantity = clamp_quantity(value)
            self._touch(item, actor_id)
            self.session.flush()
            logger.info(
                "inventory_quantity_set",
                extra={
                    "item_id": str(item_id),
                    "requested": int(value),
                    "before": before,
                    "after": item.quantity,
                },
            )
            return item.to_dto()

    def consume(self, repair_type_id: UUID, actor_id: UUID, quantity: int = 1) -> InventoryItem | None:
        """
        Take stock for a completed repair.

        Returns None when the repair type has no inventory row.  Unlimited
        items are returned unchanged.
        """
        with self._unit_of_work("consume_stock", actor_id):
            item = self._item_for_repair_type(repair_type_id)
            if item is None:
                return None
            if item.unlimited_stock:
                return item.to_dto()
            before = item.quantity
            item.quantity = clamp_quantity(before - quantity)
            self._touch(item, actor_id)
            self.session.flush()
            logger.info(
                "inventory_consumed",
                extra={
                    "repair_type_id": str(repair_type_id),
                    "before": before,
                    "after": item.quantity,
                },
            )
            return item.to_dto()

    # -------------------------------------------------------------------------
    # Thresholds and prices
    # -------------------------------------------------------------------------

    def set_min_stock_level(self, item_id: UUID, level: int, actor_id: UUID) -> InventoryItem:
        if int(level) < 0:
            raise ValidationError("min_stock_level", "cannot be negative")
        with self._unit_of_work("set_min_stock_level", actor_id):
            self._require_admin(actor_id)
            item = self._item(item_id)
            item.min_stock_level = int(level)
            self._touch(item, actor_id)
            self.session.flush()
            logger.info(
                "inventory_threshold_set",
                extra={"item_id": str(item_id), "min_stock_level": item.min_stock_level},
            )
            return item.to_dto()

    def set_purchase_price(self, item_id: UUID, price: Decimal | str, actor_id: UUID) -> InventoryItem:
        amount = to_decimal(price)
        if amount < 0:
            raise ValidationError("purchase_price", "cannot be negative")
        with self._unit_of_work("set_purchase_price", actor_id):
            self._require_admin(actor_id)
            item = self._item(item_id)
            item.purchase_price = amount
            self._touch(item, actor_id)
            self.session.flush()
            logger.info(
                "inventory_purchase_price_set",
                extra={"item_id": str(item_id), "purchase_price": amount},
            )
            return item.to_dto()

    def set_unlimited(self, item_id: UUID, unlimited: bool, actor_id: UUID) -> InventoryItem:
        with self._unit_of_work("set_unlimited", actor_id):
            self._require_admin(actor_id)
            item = self._item(item_id)
            item.unlimited_stock = bool(unlimited)
            self._touch(item, actor_id)
            self.session.flush()
            logger.info(
                "inventory_unlimited_set",
                extra={"item_id": str(item_id), "unlimited_stock": item.unlimited_stock},
            )
            return item.to_dto()

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    def create_group(self, name: str, min_stock_level: int, actor_id: UUID) -> InventoryGroup:
        if not name or not name.strip():
            raise ValidationError("name", "required")
        if int(min_stock_level) < 0:
            raise ValidationError("min_stock_level", "cannot be negative")
        with self._unit_of_work("create_group", actor_id):
            self._require_admin(actor_id)
            group = InventoryGroupModel(
                name=name.strip(),
                min_stock_level=int(min_stock_level),
                created_by_id=actor_id,
            )
            self.session.add(group)
            self.session.flush()
            logger.info(
                "inventory_group_created",
                extra={"group_id": str(group.id), "group_name": group.name},
            )
            return group.to_dto()

    def set_group_min_stock_level(self, group_id: UUID, level: int, actor_id: UUID) -> InventoryGroup:
        if int(level) < 0:
            raise ValidationError("min_stock_level", "cannot be negative")
        with self._unit_of_work("set_group_min_stock_level", actor_id):
            self._require_admin(actor_id)
            group = self._group(group_id)
            group.min_stock_level = int(level)
            self._touch(group, actor_id)
            self.session.flush()
            return group.to_dto()

    def assign_group(self, item_id: UUID, group_id: UUID | None, actor_id: UUID) -> InventoryItem:
        with self._unit_of_work("assign_group", actor_id):
            self._require_admin(actor_id)
            item = self._item(item_id)
            if group_id is not None:
                self._group(group_id)
            item.group_id = group_id
            self._touch(item, actor_id)
            self.session.flush()
            logger.info(
                "inventory_group_assigned",
                extra={"item_id": str(item_id), "group_id": str(group_id) if group_id else None},
            )
            return item.to_dto()

    def delete_group(self, group_id: UUID, actor_id: UUID) -> int:
        """Delete a group; its members become ungrouped.  Returns member count."""
        with self._unit_of_work("delete_group", actor_id):
            self._require_admin(actor_id)
            group = self._group(group_id)
            released = self.session.execute(
                update(InventoryItemModel)
                .where(InventoryItemModel.group_id == group_id)
                .values(group_id=None, updated_by_id=actor_id)
                .execution_options(synchronize_session="fetch")
            ).rowcount
            self.session.delete(group)
            self.session.flush()
            logger.info(
                "inventory_group_deleted",
                extra={"group_id": str(group_id), "released_items": released},
            )
            return released

    # -------------------------------------------------------------------------
    # Products (repair type + inventory row)
    # -------------------------------------------------------------------------

    def add_product(
        self,
        name: str,
        price: Decimal | str,
        actor_id: UUID,
        *,
        points: Decimal | str = DEFAULT_POINTS,
        description: str | None = None,
        quantity: int = 0,
        min_stock_level: int = DEFAULT_MIN_STOCK_LEVEL,
        purchase_price: Decimal | str = Decimal("0"),
        unlimited_stock: bool = False,
        group_id: UUID | None = None,
        models: Iterable[str] = (),
    ) -> tuple[RepairType, InventoryItem]:
        """Create a repair type together with its inventory row."""
        if not name or not name.strip():
            raise ValidationError("name", "required")
        price_d, points_d, purchase_d = to_decimal(price), to_decimal(points), to_decimal(purchase_price)
        if price_d < 0 or points_d < 0 or purchase_d < 0:
            raise ValidationError("price", "price, points and purchase price cannot be negative")
        model_list = _validate_models(models)

        with self._unit_of_work("add_product", actor_id):
            self._require_admin(actor_id)
            clean = name.strip()
            exists = self.session.execute(
                select(RepairTypeModel.id).where(RepairTypeModel.name == clean)
            ).first()
            if exists is not None:
                raise DuplicateRepairTypeError(clean)
            if group_id is not None:
                self._group(group_id)

            rt = RepairTypeModel(
                name=clean,
                description=description,
                price=price_d,
                points=points_d,
                created_by_id=actor_id,
            )
            self.session.add(rt)
            self.session.flush()
            for model in model_list:
                self.session.add(
                    RepairTypeModelMapping(repair_type_id=rt.id, model=model, created_by_id=actor_id)
                )
            item = InventoryItemModel(
                repair_type_id=rt.id,
                quantity=clamp_quantity(quantity),
                min_stock_level=int(min_stock_level),
                purchase_price=purchase_d,
                unlimited_stock=unlimited_stock,
                group_id=group_id,
                created_by_id=actor_id,
            )
            self.session.add(item)
            self.session.flush()
            logger.info(
                "product_added",
                extra={
                    "repair_type_id": str(rt.id),
                    "item_id": str(item.id),
                    "product_name": clean,
                    "models": model_list,
                },
            )
            return rt.to_dto(model_list), item.to_dto()

    def update_product(
        self,
        repair_type_id: UUID,
        actor_id: UUID,
        *,
        name: str | None = None,
        price: Decimal | str | None = None,
        points: Decimal | str | None = None,
        description: str | None = None,
        models: Iterable[str] | None = None,
    ) -> RepairType:
        """Update catalogue fields; ``models`` replaces the whole mapping set."""
        model_list = _validate_models(models) if models is not None else None
        with self._unit_of_work("update_product", actor_id):
            self._require_admin(actor_id)
            rt = self._repair_type(repair_type_id)
            if name is not None:
                clean = name.strip()
                if not clean:
                    raise ValidationError("name", "required")
                clash = self.session.execute(
                    select(RepairTypeModel.id).where(
                        RepairTypeModel.name == clean, RepairTypeModel.id != repair_type_id
                    )
                ).first()
                if clash is not None:
                    raise DuplicateRepairTypeError(clean)
                rt.name = clean
            if price is not None:
                rt.price = to_decimal(price)
            if points is not None:
                rt.points = to_decimal(points)
            if description is not None:
                rt.description = description
            self._touch(rt, actor_id)

            if model_list is not None:
                self.session.execute(
                    delete(RepairTypeModelMapping).where(
                        RepairTypeModelMapping.repair_type_id == repair_type_id
                    )
                )
                for model in model_list:
                    self.session.add(
                        RepairTypeModelMapping(
                            repair_type_id=repair_type_id, model=model, created_by_id=actor_id
                        )
                    )
            self.session.flush()
            current = tuple(
                self.session.execute(
                    select(RepairTypeModelMapping.model)
                    .where(RepairTypeModelMapping.repair_type_id == repair_type_id)
                    .order_by(RepairTypeModelMapping.model)
                ).scalars()
            )
            logger.info(
                "product_updated",
                extra={"repair_type_id": str(repair_type_id), "models": current},
            )
            return rt.to_dto(current)

    def delete_product(self, item_id: UUID, actor_id: UUID) -> dict[str, int]:
        """
        Remove a product and everything that references it, atomically.

        Returns the number of rows removed per table.
        """
        with self._unit_of_work("delete_product", actor_id):
            self._require_admin(actor_id)
            item = self._item(item_id)
            repair_type_id = item.repair_type_id
            removed: dict[str, int] = {}
            removed["inventory"] = self.session.execute(
                delete(InventoryItemModel).where(InventoryItemModel.id == item_id)
            ).rowcount
            removed["work_registrations"] = self.session.execute(
                delete(WorkRegistrationModel).where(
                    WorkRegistrationModel.repair_type_id == repair_type_id
                )
            ).rowcount
            removed["repair_type_models"] = self.session.execute(
                delete(RepairTypeModelMapping).where(
                    RepairTypeModelMapping.repair_type_id == repair_type_id
                )
            ).rowcount
            removed["repair_types"] = self.session.execute(
                delete(RepairTypeModel).where(RepairTypeModel.id == repair_type_id)
            ).rowcount
            logger.info(
                "product_deleted",
                extra={"item_id": str(item_id), "repair_type_id": str(repair_type_id), "removed": removed},
            )
            return removed


class DebouncedInventoryEditor:
    """
    Coalesces keystroke-level edits of quantity, price and threshold fields.

    Each (item, field) pair keeps only its latest value; the write runs once
    the debounce delay passes without a newer edit.  ``ledger_scope`` yields
    a ledger service inside its own transaction for each write.
    """

    def __init__(
        self,
        ledger_scope: Callable[[], AbstractContextManager[InventoryLedgerService]],
        debouncer: Debouncer | None = None,
    ):
        self._ledger_scope = ledger_scope
        self._debouncer = debouncer or Debouncer()

    def _write(self, method: str, item_id: UUID, value, actor_id: UUID) -> None:
        with self._ledger_scope() as ledger:
            getattr(ledger, method)(item_id, value, actor_id)

    def edit_quantity(self, item_id: UUID, value: int, actor_id: UUID) -> None:
        self._debouncer.schedule((item_id, "quantity"), self._write, "set_quantity", item_id, value, actor_id)

    def edit_min_stock_level(self, item_id: UUID, value: int, actor_id: UUID) -> None:
        self._debouncer.schedule(
            (item_id, "min_stock_level"), self._write, "set_min_stock_level", item_id, value, actor_id
        )

    def edit_purchase_price(self, item_id: UUID, value: Decimal | str, actor_id: UUID) -> None:
        self._debouncer.schedule(
            (item_id, "purchase_price"), self._write, "set_purchase_price", item_id, value, actor_id
        )

    def flush(self) -> int:
        return self._debouncer.flush()

    def cancel_all(self) -> int:
        return self._debouncer.cancel_all()

    @property
    def pending_count(self) -> int:
        return self._debouncer.pending_count
