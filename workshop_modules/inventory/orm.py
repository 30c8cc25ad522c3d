"""
Module: workshop_modules.inventory.orm
Responsibility: SQLAlchemy ORM persistence for the repair catalogue and the
    stock ledger: repair types, their bike-model applicability, inventory
    groups, and inventory items.

Architecture position: Modules > Inventory > ORM.  Inherits from TrackedBase
    (workshop_kernel.db.base).

Invariants enforced:
    - repair type names are unique.
    - one inventory row per repair type (uq_inventory_repair_type).
    - (repair_type_id, model) pairs are unique.
    - quantity is stored >= 0 (ck_inventory_quantity_floor); the service
      clamps before writing, the constraint catches anything else.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from workshop_kernel.db.base import TrackedBase
from workshop_kernel.db.types import Money, Points


# =============================================================================
# RepairTypeModel
# =============================================================================

class RepairTypeModel(TrackedBase):
    """
    ORM model for a catalogue repair type.

    Maps to: workshop_modules.inventory.models.RepairType (frozen dataclass).
    """

    __tablename__ = "repair_types"

    __table_args__ = (
        UniqueConstraint("name", name="uq_repair_type_name"),
    )

    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Money] = mapped_column(default=Decimal("0"))
    points: Mapped[Points] = mapped_column(default=Decimal("1"))

    def to_dto(self, models: tuple[str, ...] = ()):
        from workshop_modules.inventory.models import RepairType
        return RepairType(
            id=self.id,
            name=self.name,
            description=self.description,
            price=self.price,
            points=self.points,
            models=models,
        )

    def __repr__(self) -> str:
        return f"<RepairTypeModel {self.name} price={self.price} points={self.points}>"


class RepairTypeModelMapping(TrackedBase):
    """Restricts a repair type to a bike model.  No rows: applies to all."""

    __tablename__ = "repair_type_models"

    __table_args__ = (
        UniqueConstraint("repair_type_id", "model", name="uq_repair_type_model"),
        Index("idx_repair_type_model_model", "model"),
    )

    repair_type_id: Mapped[UUID] = mapped_column(ForeignKey("repair_types.id"))
    model: Mapped[str] = mapped_column(String(10))


# =============================================================================
# InventoryGroupModel
# =============================================================================

class InventoryGroupModel(TrackedBase):
    """
    ORM model for an inventory group.

    Maps to: workshop_modules.inventory.models.InventoryGroup.
    """

    __tablename__ = "inventory_groups"

    __table_args__ = (
        UniqueConstraint("name", name="uq_inventory_group_name"),
    )

    name: Mapped[str] = mapped_column(String(200))
    min_stock_level: Mapped[int] = mapped_column(Integer, default=5)

    def to_dto(self):
        from workshop_modules.inventory.models import InventoryGroup
        return InventoryGroup(
            id=self.id,
            name=self.name,
            min_stock_level=self.min_stock_level,
        )


# =============================================================================
# InventoryItemModel
# =============================================================================

class InventoryItemModel(TrackedBase):
    """
    ORM model for the stock record of one repair type.

    Maps to: workshop_modules.inventory.models.InventoryItem.
    """

    __tablename__ = "inventory"

    __table_args__ = (
        UniqueConstraint("repair_type_id", name="uq_inventory_repair_type"),
        CheckConstraint("quantity >= 0", name="ck_inventory_quantity_floor"),
        Index("idx_inventory_group", "group_id"),
    )

    repair_type_id: Mapped[UUID] = mapped_column(ForeignKey("repair_types.id"))
    quantity: Mapped[int] = mapped_column(Integer, default=0)
    min_stock_level: Mapped[int] = mapped_column(Integer, default=5)
    purchase_price: Mapped[Money] = mapped_column(default=Decimal("0"))
    unlimited_stock: Mapped[bool] = mapped_column(Boolean, default=False)
    group_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("inventory_groups.id"), nullable=True,
    )

    def to_dto(self):
        from workshop_modules.inventory.models import InventoryItem
        return InventoryItem(
            id=self.id,
            repair_type_id=self.repair_type_id,
            quantity=self.quantity,
            min_stock_level=self.min_stock_level,
            purchase_price=self.purchase_price,
            unlimited_stock=self.unlimited_stock,
            group_id=self.group_id,
        )

    def __repr__(self) -> str:
        return (
            f"<InventoryItemModel {self.id} qty={self.quantity} "
            f"min={self.min_stock_level} unlimited={self.unlimited_stock}>"
        )
