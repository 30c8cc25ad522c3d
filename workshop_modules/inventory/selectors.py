"""
Inventory read models (``workshop_modules.inventory.selectors``).

Stock reports per item, group aggregates, the catalogue filtered by bike
model, and the stock warnings shown while registering repairs.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable
from uuid import UUID

from sqlalchemy import select

from workshop_kernel.selectors.base import BaseSelector
from workshop_kernel.services.settings_service import SHOW_STOCK_WARNINGS, SettingsProvider
from workshop_modules.inventory.helpers import effective_stock, group_stock
from workshop_modules.inventory.models import (
    GroupStock,
    InventoryGroup,
    InventoryItem,
    RepairType,
    StockReport,
    StockStatus,
    StockWarning,
)
from workshop_modules.inventory.orm import (
    InventoryGroupModel,
    InventoryItemModel,
    RepairTypeModel,
    RepairTypeModelMapping,
)

_WARNING_STATUSES = (StockStatus.LOW, StockStatus.OUT)


class InventorySelector(BaseSelector):

    def items(self) -> list[InventoryItem]:
        return [m.to_dto() for m in self.session.execute(select(InventoryItemModel)).scalars()]

    def get_item(self, item_id: UUID) -> InventoryItem | None:
        m = self.session.get(InventoryItemModel, item_id)
        return m.to_dto() if m else None

    def item_for_repair_type(self, repair_type_id: UUID) -> InventoryItem | None:
        m = self.session.execute(
            select(InventoryItemModel).where(InventoryItemModel.repair_type_id == repair_type_id)
        ).scalar_one_or_none()
        return m.to_dto() if m else None

    def groups(self) -> dict[UUID, InventoryGroup]:
        return {
            g.id: g.to_dto()
            for g in self.session.execute(
                select(InventoryGroupModel).order_by(InventoryGroupModel.name)
            ).scalars()
        }

    def _model_map(self) -> dict[UUID, tuple[str, ...]]:
        mapping: dict[UUID, list[str]] = defaultdict(list)
        for rt_id, model in self.session.execute(
            select(RepairTypeModelMapping.repair_type_id, RepairTypeModelMapping.model)
            .order_by(RepairTypeModelMapping.model)
        ):
            mapping[rt_id].append(model)
        return {k: tuple(v) for k, v in mapping.items()}

    def repair_types(self) -> list[RepairType]:
        models = self._model_map()
        return [
            rt.to_dto(models.get(rt.id, ()))
            for rt in self.session.execute(
                select(RepairTypeModel).order_by(RepairTypeModel.name)
            ).scalars()
        ]

    def get_repair_type(self, repair_type_id: UUID) -> RepairType | None:
        rt = self.session.get(RepairTypeModel, repair_type_id)
        if rt is None:
            return None
        return rt.to_dto(self._model_map().get(rt.id, ()))

    def repair_types_for_model(self, model: str) -> list[RepairType]:
        """Repair types applicable to ``model``; unmapped types apply to all."""
        return [rt for rt in self.repair_types() if rt.applies_to(model)]

    def stock_reports(self) -> list[StockReport]:
        items = self.items()
        groups = self.groups()
        names = dict(self.session.execute(select(RepairTypeModel.id, RepairTypeModel.name)).all())
        reports = [
            effective_stock(item, items, groups, name=names.get(item.repair_type_id, ""))
            for item in items
        ]
        return sorted(reports, key=lambda r: r.name.lower())

    def group_stocks(self) -> list[GroupStock]:
        items = self.items()
        return [group_stock(g, items) for g in self.groups().values()]

    def low_stock(self) -> list[StockReport]:
        return [r for r in self.stock_reports() if r.status == StockStatus.LOW]

    def out_of_stock(self) -> list[StockReport]:
        return [r for r in self.stock_reports() if r.status == StockStatus.OUT]

    def stock_warnings(
        self,
        repair_type_ids: Iterable[UUID],
        settings: SettingsProvider | None = None,
    ) -> list[StockWarning]:
        """
        Low/out warnings for the repairs being registered.

        Empty when the ``show_stock_warnings`` preference is off.
        """
        if settings is not None and not settings.get_bool(SHOW_STOCK_WARNINGS, default=True):
            return []
        wanted = set(repair_type_ids)
        return [
            StockWarning(
                repair_type_id=r.repair_type_id,
                name=r.name,
                status=r.status,
                effective_quantity=r.effective_quantity or 0,
            )
            for r in self.stock_reports()
            if r.repair_type_id in wanted and r.status in _WARNING_STATUSES
        ]
