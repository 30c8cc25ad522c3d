"""
Bike read models (``workshop_modules.bikes.selectors``).

Bikes by table, pending repairs per bike, the mechanic's own queue, the
checklist state shown in the finish dialog, and the warranty and scoring
analytics derived from completed registrations.
"""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Iterable
from uuid import UUID

from sqlalchemy import func, or_, select

from workshop_kernel.selectors.base import BaseSelector
from workshop_modules.bikes.helpers import (
    detect_warranty_cases,
    mechanic_scores,
    needs_call_attention,
    warranty_stats_by_mechanic,
    warranty_stats_by_repair_type,
)
from workshop_modules.bikes.models import (
    Bike,
    CallRecord,
    CallStatus,
    ChecklistEntry,
    ChecklistState,
    CompletedRepair,
    MechanicScore,
    MechanicWarrantyStats,
    RepairTypeCount,
    TableSlot,
    WarrantyCase,
    WorkflowStatus,
    WorkRegistration,
)
from workshop_modules.bikes.orm import (
    BikeCallModel,
    BikeModel,
    CallStatusModel,
    ChecklistCompletionModel,
    ChecklistItemModel,
    WorkRegistrationModel,
)
from workshop_modules.inventory.orm import RepairTypeModel

_COMPLETED = WorkflowStatus.COMPLETED.value

_MY_TASK_ORDER = {
    WorkflowStatus.IN_REPAIR: 0,
    WorkflowStatus.READY_FOR_REPAIR: 1,
    WorkflowStatus.AWAITING_PARTS: 2,
    WorkflowStatus.DIAGNOSIS_NEEDED: 3,
}


class BikeSelector(BaseSelector):

    # -------------------------------------------------------------------------
    # Bikes
    # -------------------------------------------------------------------------

    def get_bike(self, bike_id: UUID) -> Bike | None:
        bike = self.session.get(BikeModel, bike_id)
        return bike.to_dto() if bike else None

    def find_by_frame_number(self, frame_number: str) -> Bike | None:
        bike = self.session.execute(
            select(BikeModel).where(BikeModel.frame_number == frame_number.strip())
        ).scalar_one_or_none()
        return bike.to_dto() if bike else None

    def search(self, query: str) -> list[Bike]:
        """
        Bikes whose frame number contains ``query`` (case-insensitive), plus
        the active bikes on table ``query``.
        """
        text = (query or "").strip()
        if not text:
            return []
        rows = self.session.execute(
            select(BikeModel)
            .where(
                or_(
                    func.lower(BikeModel.frame_number).contains(text.lower()),
                    (BikeModel.table_number == text) & (BikeModel.workflow_status != _COMPLETED),
                )
            )
            .order_by(BikeModel.updated_at.desc())
        ).scalars()
        return [b.to_dto() for b in rows]

    def table_overview(self, tables: Iterable[str]) -> list[TableSlot]:
        """One slot per table, in the order given, with the bikes on it."""
        table_list = list(tables)
        by_table: dict[str, list[Bike]] = {t: [] for t in table_list}
        rows = self.session.execute(
            select(BikeModel)
            .where(BikeModel.table_number.in_(table_list))
            .order_by(BikeModel.created_at)
        ).scalars()
        for bike in rows:
            by_table[bike.table_number].append(bike.to_dto())
        return [TableSlot(t, tuple(by_table[t])) for t in table_list]

    def bikes_without_table(self) -> list[Bike]:
        rows = self.session.execute(
            select(BikeModel)
            .where(BikeModel.table_number.is_(None))
            .order_by(BikeModel.updated_at.desc())
        ).scalars()
        return [b.to_dto() for b in rows]

    def my_bike_tasks(self, mechanic_id: UUID) -> list[Bike]:
        """
        Bikes held by (or assigned to) the mechanic, excluding finished ones
        and ones waiting for the customer.  In-repair bikes come first.
        """
        rows = self.session.execute(
            select(BikeModel).where(
                BikeModel.current_mechanic_id == mechanic_id,
                BikeModel.workflow_status.not_in(
                    (_COMPLETED, WorkflowStatus.AWAITING_APPROVAL.value)
                ),
            )
        ).scalars()
        bikes = [b.to_dto() for b in rows]
        bikes.sort(
            key=lambda b: (
                _MY_TASK_ORDER.get(b.workflow_status, len(_MY_TASK_ORDER)),
                b.table_number or "",
            )
        )
        return bikes

    def available_repairs(self) -> list[Bike]:
        """Approved bikes nobody has claimed yet."""
        rows = self.session.execute(
            select(BikeModel)
            .where(
                BikeModel.workflow_status == WorkflowStatus.READY_FOR_REPAIR.value,
                BikeModel.current_mechanic_id.is_(None),
            )
            .order_by(BikeModel.updated_at)
        ).scalars()
        return [b.to_dto() for b in rows]

    def by_status(self, status: WorkflowStatus | str) -> list[Bike]:
        rows = self.session.execute(
            select(BikeModel)
            .where(BikeModel.workflow_status == WorkflowStatus.parse(status).value)
            .order_by(BikeModel.updated_at)
        ).scalars()
        return [b.to_dto() for b in rows]

    # -------------------------------------------------------------------------
    # Registrations
    # -------------------------------------------------------------------------

    def registrations(self, bike_id: UUID) -> list[WorkRegistration]:
        """All registrations of a bike; sales bikes show a customer price of 0."""
        bike = self.session.get(BikeModel, bike_id)
        if bike is None:
            return []
        rows = self.session.execute(
            select(WorkRegistrationModel, RepairTypeModel)
            .join(RepairTypeModel, RepairTypeModel.id == WorkRegistrationModel.repair_type_id)
            .where(WorkRegistrationModel.bike_id == bike_id)
            .order_by(WorkRegistrationModel.created_at, RepairTypeModel.name)
        ).all()
        return [reg.to_dto(rt, bike.is_sales_bike) for reg, rt in rows]

    def pending_registrations(self, bike_id: UUID) -> list[WorkRegistration]:
        return [r for r in self.registrations(bike_id) if r.is_pending]

    # -------------------------------------------------------------------------
    # Checklist and calls
    # -------------------------------------------------------------------------

    def checklist_state(self, bike_id: UUID) -> ChecklistState:
        items = self.session.execute(
            select(ChecklistItemModel)
            .where(ChecklistItemModel.is_active.is_(True))
            .order_by(ChecklistItemModel.sort_order, ChecklistItemModel.name)
        ).scalars()
        done = {
            c.checklist_item_id: c
            for c in self.session.execute(
                select(ChecklistCompletionModel).where(ChecklistCompletionModel.bike_id == bike_id)
            ).scalars()
        }
        entries = []
        for item in items:
            completion = done.get(item.id)
            entries.append(
                ChecklistEntry(
                    item=item.to_dto(),
                    completed=completion is not None,
                    completed_by=completion.completed_by if completion else None,
                    completed_at=completion.completed_at if completion else None,
                )
            )
        return ChecklistState(bike_id=bike_id, entries=tuple(entries))

    def call_statuses(self, include_inactive: bool = False) -> list[CallStatus]:
        """Call status labels in display order."""
        query = select(CallStatusModel).order_by(CallStatusModel.sort_order, CallStatusModel.name)
        if not include_inactive:
            query = query.where(CallStatusModel.is_active.is_(True))
        return [s.to_dto() for s in self.session.execute(query).scalars()]

    def call_history(self, bike_id: UUID) -> list[CallRecord]:
        """Calls for a bike, newest first."""
        rows = self.session.execute(
            select(BikeCallModel)
            .where(BikeCallModel.bike_id == bike_id)
            .order_by(BikeCallModel.called_at.desc())
        ).scalars()
        return [c.to_dto() for c in rows]

    def bikes_needing_call(
        self,
        now: datetime,
        zone: tzinfo,
        opening_hour: int = 9,
        closing_hour: int = 17,
        threshold_hours: int = 3,
    ) -> list[Bike]:
        """Bikes waiting for approval whose customer should be called now."""
        last_calls = dict(
            self.session.execute(
                select(BikeCallModel.bike_id, func.max(BikeCallModel.called_at))
                .group_by(BikeCallModel.bike_id)
            ).all()
        )
        result = []
        for bike in self.by_status(WorkflowStatus.AWAITING_APPROVAL):
            if needs_call_attention(
                bike.workflow_status,
                last_calls.get(bike.id),
                now,
                zone,
                opening_hour,
                closing_hour,
                threshold_hours,
            ):
                result.append(bike)
        return result

    # -------------------------------------------------------------------------
    # Analytics
    # -------------------------------------------------------------------------

    def completed_repairs(self, since: datetime | None = None) -> list[CompletedRepair]:
        stmt = (
            select(WorkRegistrationModel, RepairTypeModel.name, RepairTypeModel.points, BikeModel.frame_number)
            .join(RepairTypeModel, RepairTypeModel.id == WorkRegistrationModel.repair_type_id)
            .join(BikeModel, BikeModel.id == WorkRegistrationModel.bike_id)
            .where(
                WorkRegistrationModel.completed.is_(True),
                WorkRegistrationModel.completed_at.is_not(None),
            )
        )
        if since is not None:
            stmt = stmt.where(WorkRegistrationModel.completed_at >= since)
        return [
            CompletedRepair(
                registration_id=reg.id,
                bike_id=reg.bike_id,
                repair_type_id=reg.repair_type_id,
                completed_at=reg.completed_at,
                mechanic_id=reg.mechanic_id,
                repair_type_name=name,
                frame_number=frame,
                points=points,
            )
            for reg, name, points, frame in self.session.execute(stmt).all()
        ]

    def warranty_cases(self, since: datetime | None = None) -> list[WarrantyCase]:
        """
        Warranty cases completed at or after ``since``.

        The full history is loaded so a repair just after ``since`` is still
        compared against its predecessor from before it.
        """
        return detect_warranty_cases(self.completed_repairs(), since=since)

    def warranty_stats(
        self, since: datetime | None = None
    ) -> tuple[list[MechanicWarrantyStats], list[RepairTypeCount]]:
        cases = self.warranty_cases(since)
        return warranty_stats_by_mechanic(cases), warranty_stats_by_repair_type(cases)

    def mechanic_stats(self, since: datetime | None = None) -> list[MechanicScore]:
        return mechanic_scores(self.completed_repairs(since))
