"""
Reference data seeding (``workshop_modules.seed``).

Installs what a fresh workshop needs before staff can work: the default
completion-checklist items and call statuses from the shop configuration,
the ``Diagnose`` repair type that carries the diagnosis bonus, and the
shop-wide settings defaults.

Idempotent: rows are matched by name and never duplicated or overwritten.
Flush-only; the caller commits.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from workshop_config.schema import ShopConfig
from workshop_kernel.logging_config import get_logger
from workshop_kernel.models.profile import SYSTEM_ACTOR_ID
from workshop_kernel.models.settings import AdminSetting
from workshop_kernel.services.settings_service import SHOW_STOCK_WARNINGS
from workshop_modules.bikes.models import DIAGNOSIS_BONUS_POINTS, DIAGNOSIS_REPAIR_NAME
from workshop_modules.bikes.orm import CallStatusModel, ChecklistItemModel
from workshop_modules.inventory.orm import RepairTypeModel

logger = get_logger("modules.seed")


def seed_reference_data(session: Session, config: ShopConfig) -> dict[str, int]:
    """Install missing reference rows.  Returns the number created per kind."""
    created = {"checklist_items": 0, "call_statuses": 0, "repair_types": 0, "settings": 0}

    existing_items = set(session.execute(select(ChecklistItemModel.name)).scalars())
    for item in config.checklist_items:
        if item.name in existing_items:
            continue
        session.add(
            ChecklistItemModel(
                name=item.name,
                description=item.description,
                sort_order=item.sort_order,
                is_active=True,
                created_by_id=SYSTEM_ACTOR_ID,
            )
        )
        created["checklist_items"] += 1

    existing_statuses = set(session.execute(select(CallStatusModel.name)).scalars())
    for status in config.call_statuses:
        if status.name in existing_statuses:
            continue
        session.add(
            CallStatusModel(
                name=status.name,
                name_en=status.name_en,
                color=status.color,
                sort_order=status.sort_order,
                is_active=True,
                created_by_id=SYSTEM_ACTOR_ID,
            )
        )
        created["call_statuses"] += 1

    diagnosis = session.execute(
        select(RepairTypeModel.id).where(RepairTypeModel.name == DIAGNOSIS_REPAIR_NAME)
    ).first()
    if diagnosis is None:
        session.add(
            RepairTypeModel(
                name=DIAGNOSIS_REPAIR_NAME,
                description="Diagnosis bonus",
                price=0,
                points=DIAGNOSIS_BONUS_POINTS,
                created_by_id=SYSTEM_ACTOR_ID,
            )
        )
        created["repair_types"] += 1

    stored = session.execute(
        select(AdminSetting).where(AdminSetting.setting_key == SHOW_STOCK_WARNINGS)
    ).scalar_one_or_none()
    if stored is None:
        session.add(
            AdminSetting(
                setting_key=SHOW_STOCK_WARNINGS,
                setting_value="true" if config.show_stock_warnings else "false",
                updated_by=SYSTEM_ACTOR_ID,
            )
        )
        created["settings"] += 1

    session.flush()
    logger.info("reference_data_seeded", extra={"created_rows": created, "config_name": config.name})
    return created
