"""
Module: workshop_modules.bikes.orm
Responsibility: SQLAlchemy ORM persistence for the bike lifecycle: bikes,
    work registrations, comments, customer call history, the completion
    checklist and its per-bike ticks, and front-of-house call statuses.

Architecture position: Modules > Bikes > ORM.  Inherits from TrackedBase
    (workshop_kernel.db.base).  Staff references (mechanic, author, caller)
    are plain UUID columns without FK, like TrackedBase.created_by_id.

Invariants enforced:
    - workflow_status is one of the seven WorkflowStatus values
      (ck_bike_workflow_status), so no write path can store anything else.
    - frame numbers are unique.
    - a checklist item is ticked at most once per bike.
"""

from datetime import datetime
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
from workshop_modules.bikes.models import WORKFLOW_STATUS_VALUES

_STATUS_CHECK = "workflow_status IN ({})".format(
    ", ".join(f"'{v}'" for v in WORKFLOW_STATUS_VALUES)
)


# =============================================================================
# CallStatusModel
# =============================================================================

class CallStatusModel(TrackedBase):
    """Colour-coded call status label used on the FOH table grid."""

    __tablename__ = "table_call_statuses"

    name: Mapped[str] = mapped_column(String(100))
    name_en: Mapped[str | None] = mapped_column(String(100), nullable=True)
    color: Mapped[str] = mapped_column(String(20), default="#808080")
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    def to_dto(self):
        from workshop_modules.bikes.models import CallStatus
        return CallStatus(
            id=self.id,
            name=self.name,
            name_en=self.name_en,
            color=self.color,
            sort_order=self.sort_order,
            is_active=self.is_active,
        )


# =============================================================================
# BikeModel
# =============================================================================

class BikeModel(TrackedBase):
    """
    ORM model for a bike.

    Maps to: workshop_modules.bikes.models.Bike (frozen dataclass).
    """

    __tablename__ = "bikes"

    __table_args__ = (
        UniqueConstraint("frame_number", name="uq_bike_frame_number"),
        CheckConstraint(_STATUS_CHECK, name="ck_bike_workflow_status"),
        Index("idx_bike_status", "workflow_status"),
        Index("idx_bike_table", "table_number"),
        Index("idx_bike_mechanic", "current_mechanic_id"),
    )

    frame_number: Mapped[str] = mapped_column(String(100))
    model: Mapped[str] = mapped_column(String(10))
    workflow_status: Mapped[str] = mapped_column(String(50), default="diagnose_nodig")
    is_sales_bike: Mapped[bool] = mapped_column(Boolean, default=False)

    table_number: Mapped[str | None] = mapped_column(String(10), nullable=True)

    current_mechanic_id: Mapped[UUID | None] = mapped_column(nullable=True)
    # Set when FOH/admin assigned the mechanic explicitly.
    mechanic_pinned: Mapped[bool] = mapped_column(Boolean, default=False)

    diagnosed_by: Mapped[UUID | None] = mapped_column(nullable=True)
    diagnosed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    customer_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    call_status_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("table_call_statuses.id", ondelete="SET NULL"), nullable=True,
    )

    def to_dto(self):
        from workshop_modules.bikes.models import Bike, BikeModelCode, WorkflowStatus
        return Bike(
            id=self.id,
            frame_number=self.frame_number,
            model=BikeModelCode(self.model),
            workflow_status=WorkflowStatus(self.workflow_status),
            is_sales_bike=self.is_sales_bike,
            table_number=self.table_number,
            current_mechanic_id=self.current_mechanic_id,
            mechanic_pinned=self.mechanic_pinned,
            diagnosed_by=self.diagnosed_by,
            diagnosed_at=self.diagnosed_at,
            customer_phone=self.customer_phone,
            call_status_id=self.call_status_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def __repr__(self) -> str:
        return f"<BikeModel {self.frame_number} {self.model} status={self.workflow_status}>"


# =============================================================================
# WorkRegistrationModel
# =============================================================================

class WorkRegistrationModel(TrackedBase):
    """
    ORM model for one repair on one bike.

    Maps to: workshop_modules.bikes.models.WorkRegistration.
    """

    __tablename__ = "work_registrations"

    __table_args__ = (
        Index("idx_work_reg_bike", "bike_id"),
        Index("idx_work_reg_repair_type", "repair_type_id"),
        Index("idx_work_reg_mechanic", "mechanic_id"),
        Index("idx_work_reg_completed", "completed", "completed_at"),
    )

    bike_id: Mapped[UUID] = mapped_column(ForeignKey("bikes.id"))
    repair_type_id: Mapped[UUID] = mapped_column(ForeignKey("repair_types.id"))
    mechanic_id: Mapped[UUID | None] = mapped_column(nullable=True)

    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    last_modified_by: Mapped[UUID | None] = mapped_column(nullable=True)
    last_modified_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def to_dto(self, repair_type=None, is_sales_bike: bool = False):
        """``repair_type`` is the RepairTypeModel row, when the caller joined it."""
        from workshop_modules.bikes.helpers import customer_price
        from workshop_modules.bikes.models import WorkRegistration
        price = repair_type.price if repair_type is not None else Decimal("0")
        return WorkRegistration(
            id=self.id,
            bike_id=self.bike_id,
            repair_type_id=self.repair_type_id,
            completed=self.completed,
            mechanic_id=self.mechanic_id,
            completed_at=self.completed_at,
            last_modified_by=self.last_modified_by,
            last_modified_at=self.last_modified_at,
            repair_type_name=repair_type.name if repair_type is not None else None,
            price=price,
            customer_price=customer_price(price, is_sales_bike),
            points=repair_type.points if repair_type is not None else Decimal("0"),
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return (
            f"<WorkRegistrationModel {self.id} bike={self.bike_id} "
            f"completed={self.completed}>"
        )


# =============================================================================
# Comments and call history
# =============================================================================

class BikeCommentModel(TrackedBase):
    __tablename__ = "bike_comments"

    __table_args__ = (Index("idx_bike_comment_bike", "bike_id"),)

    bike_id: Mapped[UUID] = mapped_column(ForeignKey("bikes.id"))
    author_id: Mapped[UUID] = mapped_column()
    content: Mapped[str] = mapped_column(Text)

    def to_dto(self):
        from workshop_modules.bikes.models import BikeComment
        return BikeComment(
            id=self.id,
            bike_id=self.bike_id,
            author_id=self.author_id,
            content=self.content,
            created_at=self.created_at,
        )


class BikeCallModel(TrackedBase):
    __tablename__ = "bike_call_history"

    __table_args__ = (Index("idx_bike_call_bike", "bike_id", "called_at"),)

    bike_id: Mapped[UUID] = mapped_column(ForeignKey("bikes.id"))
    called_by: Mapped[UUID] = mapped_column()
    called_at: Mapped[datetime] = mapped_column()
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self):
        from workshop_modules.bikes.models import CallRecord
        return CallRecord(
            id=self.id,
            bike_id=self.bike_id,
            called_by=self.called_by,
            called_at=self.called_at,
            notes=self.notes,
        )


# =============================================================================
# Completion checklist
# =============================================================================

class ChecklistItemModel(TrackedBase):
    """An item that must be ticked before a bike can be finished."""

    __tablename__ = "completion_checklist_items"

    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    def to_dto(self):
        from workshop_modules.bikes.models import ChecklistItem
        return ChecklistItem(
            id=self.id,
            name=self.name,
            description=self.description,
            sort_order=self.sort_order,
            is_active=self.is_active,
        )


class ChecklistCompletionModel(TrackedBase):
    __tablename__ = "bike_checklist_completions"

    __table_args__ = (
        UniqueConstraint("bike_id", "checklist_item_id", name="uq_bike_checklist_item"),
    )

    bike_id: Mapped[UUID] = mapped_column(ForeignKey("bikes.id"))
    checklist_item_id: Mapped[UUID] = mapped_column(
        ForeignKey("completion_checklist_items.id"),
    )
    completed_by: Mapped[UUID] = mapped_column()
    completed_at: Mapped[datetime] = mapped_column()
