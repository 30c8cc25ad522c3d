"""
Bike Workflow Service (``workshop_modules.bikes.service``).

Responsibility
--------------
Every write to a bike and its children: intake, diagnosis, FSM transitions,
repair completion, the completion checklist, table and mechanic
assignment, comments, customer calls, the call status labels and admin
bulk deletes.

Architecture position
---------------------
**Modules layer** -- service facade.  Status changes are looked up in
``BIKE_WORKFLOW`` through the kernel ``WorkflowExecutor``; the service then
writes the new status and the transition's effects in the same
transaction.  Stock consumption is delegated to ``InventoryLedgerService``
running flush-only inside this service's transaction.

Invariants enforced
-------------------
* ``workflow_status`` only changes through ``BIKE_WORKFLOW`` or the FOH
  override, both restricted to ``WorkflowStatus`` values.
* The Diagnose bonus registration is inserted exactly when
  ``diagnosed_by`` goes from null to set, so at most once per bike.
* A bike reaches ``afgerond`` only with every active checklist item ticked,
  and never with a pending registration left.
* Each public method owns its transaction: commit on success, rollback on
  any failure, so side effects apply all together or not at all.

Failure modes
-------------
* ``ValidationError`` for bad input, raised before any write.
* ``InvalidTransitionError`` when the action is not defined for the
  current status.
* ``ChecklistIncompleteError`` / ``ApprovalRequiredError`` for the gates.
* ``UnauthorizedActorError`` for admin/FOH-only operations.

Usage::

    bikes = BikeWorkflowService(session, clock)
    bike = bikes.register_intake("ABC123", "S3", mechanic_id,
                                 repair_type_ids=[brake_pad_id])
    bikes.approve(bike.id, foh_id)
    bikes.claim(bike.id, mechanic_id)
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from workshop_kernel.domain.clock import Clock
from workshop_kernel.exceptions import (
    ApprovalRequiredError,
    BikeNotFoundError,
    CallRecordNotFoundError,
    CallStatusNotFoundError,
    ChecklistIncompleteError,
    ChecklistItemNotFoundError,
    DuplicateFrameNumberError,
    InvalidTransitionError,
    InvalidWorkflowStatusError,
    RegistrationCompletedError,
    RegistrationNotFoundError,
    RepairTypeNotFoundError,
    ValidationError,
)
from workshop_kernel.logging_config import LogContext, get_logger
from workshop_kernel.models.profile import SYSTEM_ACTOR_ID, ProfileRole
from workshop_kernel.services.base import BaseService
from workshop_kernel.services.profile_service import ProfileService
from workshop_kernel.services.workflow_executor import TransitionResult, WorkflowExecutor
from workshop_modules.bikes.models import (
    DIAGNOSIS_BONUS_POINTS,
    DIAGNOSIS_REPAIR_NAME,
    DIAGNOSIS_STATUSES,
    REPAIRABLE_STATUSES,
    Bike,
    BikeComment,
    BikeModelCode,
    CallRecord,
    CallStatus,
    WorkflowStatus,
    WorkRegistration,
)
from workshop_modules.bikes.orm import (
    BikeCallModel,
    BikeCommentModel,
    BikeModel,
    CallStatusModel,
    ChecklistCompletionModel,
    ChecklistItemModel,
    WorkRegistrationModel,
)
from workshop_modules.bikes.workflows import (
    BIKE_WORKFLOW,
    CHECKLIST_COMPLETE,
    EFFECT_CLAIM_MECHANIC,
    EFFECT_CLEAR_MECHANIC,
    EFFECT_FORCE_COMPLETE,
    EFFECT_STAMP_DIAGNOSIS,
    RESERVED_ACTIONS,
)
from workshop_modules.inventory.orm import RepairTypeModel
from workshop_modules.inventory.service import InventoryLedgerService
from workshop_modules.tasks.orm import FohTaskModel

logger = get_logger("modules.bikes.service")

_UNSET: Any = object()
_STAFF_DESK_ROLES = (ProfileRole.FRONT_OF_HOUSE, ProfileRole.ADMIN)


def _clean_table(table_number: str | None) -> str | None:
    if table_number is None:
        return None
    cleaned = str(table_number).strip()
    return cleaned or None


def _unique(ids: Iterable[UUID]) -> list[UUID]:
    return list(dict.fromkeys(ids))


class BikeWorkflowService(BaseService):
    """
    Writes to bikes and their registrations, checklist, comments and calls.

    Transaction boundary: commits on success, rolls back on failure.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auto_commit: bool = True,
        executor: WorkflowExecutor | None = None,
    ):
        super().__init__(session, clock, auto_commit)
        self._profiles = ProfileService(session)
        self._executor = executor or WorkflowExecutor()
        self._ledger = InventoryLedgerService(session, self.clock, auto_commit=False)

    # =========================================================================
    # Lookups
    # =========================================================================

    def _bike(self, bike_id: UUID) -> BikeModel:
        bike = self.session.get(BikeModel, bike_id)
        if bike is None:
            raise BikeNotFoundError(bike_id)
        return bike

    def _repair_types(self, repair_type_ids: Iterable[UUID]) -> list[RepairTypeModel]:
        result = []
        for rt_id in _unique(repair_type_ids):
            rt = self.session.get(RepairTypeModel, rt_id)
            if rt is None:
                raise RepairTypeNotFoundError(rt_id)
            result.append(rt)
        return result

    def _diagnosis_repair_type(self) -> RepairTypeModel:
        rt = self.session.execute(
            select(RepairTypeModel).where(RepairTypeModel.name == DIAGNOSIS_REPAIR_NAME)
        ).scalar_one_or_none()
        if rt is None:
            rt = RepairTypeModel(
                name=DIAGNOSIS_REPAIR_NAME,
                price=0,
                points=DIAGNOSIS_BONUS_POINTS,
                created_by_id=SYSTEM_ACTOR_ID,
            )
            self.session.add(rt)
            self.session.flush()
            logger.info("diagnosis_repair_type_created", extra={"repair_type_id": str(rt.id)})
        return rt

    def _pending(self, bike_id: UUID) -> list[WorkRegistrationModel]:
        return list(
            self.session.execute(
                select(WorkRegistrationModel).where(
                    WorkRegistrationModel.bike_id == bike_id,
                    WorkRegistrationModel.completed.is_(False),
                )
            ).scalars()
        )

    def _open_checklist_items(self, bike_id: UUID) -> list[UUID]:
        ticked = select(ChecklistCompletionModel.checklist_item_id).where(
            ChecklistCompletionModel.bike_id == bike_id
        )
        return list(
            self.session.execute(
                select(ChecklistItemModel.id)
                .where(
                    ChecklistItemModel.is_active.is_(True),
                    ChecklistItemModel.id.not_in(ticked),
                )
                .order_by(ChecklistItemModel.sort_order)
            ).scalars()
        )

    def _registration_dto(self, reg: WorkRegistrationModel, bike: BikeModel) -> WorkRegistration:
        return reg.to_dto(self.session.get(RepairTypeModel, reg.repair_type_id), bike.is_sales_bike)

    # =========================================================================
    # Transitions and effects
    # =========================================================================

    def _apply(
        self,
        bike: BikeModel,
        action: str,
        actor_id: UUID,
        context: dict[str, Any] | None = None,
    ) -> TransitionResult:
        result = self._executor.execute(
            BIKE_WORKFLOW, bike.id, bike.workflow_status, action, context
        )
        if not result.success:
            if result.failed_guard == CHECKLIST_COMPLETE:
                raise ChecklistIncompleteError(
                    bike.id, (context or {}).get("open_checklist_items", ())
                )
            raise InvalidTransitionError(
                BIKE_WORKFLOW.name, bike.id, bike.workflow_status, action
            )

        now = self.clock.now()
        for effect in result.transition.effects:
            self._apply_effect(bike, effect, actor_id, now)
        bike.workflow_status = result.to_state
        bike.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "bike_transitioned",
            extra={
                "bike_id": str(bike.id),
                "action": action,
                "from_state": result.from_state,
                "to_state": result.to_state,
                "current_mechanic_id": str(bike.current_mechanic_id) if bike.current_mechanic_id else None,
            },
        )
        return result

    def _apply_effect(self, bike: BikeModel, effect: str, actor_id: UUID, now: datetime) -> None:
        if effect == EFFECT_STAMP_DIAGNOSIS:
            self._stamp_diagnosis(bike, actor_id, now)
        elif effect == EFFECT_CLAIM_MECHANIC:
            bike.current_mechanic_id = actor_id
            bike.mechanic_pinned = False
        elif effect == EFFECT_CLEAR_MECHANIC:
            if not bike.mechanic_pinned:
                bike.current_mechanic_id = None
        elif effect == EFFECT_FORCE_COMPLETE:
            self._force_complete(bike, actor_id, now)
        else:
            raise ValueError(f"Unknown bike workflow effect: {effect}")

    def _stamp_diagnosis(self, bike: BikeModel, actor_id: UUID, now: datetime) -> bool:
        """Stamp the diagnosis and award the bonus, unless already diagnosed."""
        if bike.diagnosed_by is not None:
            return False
        bike.diagnosed_by = actor_id
        bike.diagnosed_at = now
        diagnosis = self._diagnosis_repair_type()
        self.session.add(
            WorkRegistrationModel(
                bike_id=bike.id,
                repair_type_id=diagnosis.id,
                mechanic_id=actor_id,
                completed=True,
                completed_at=now,
                last_modified_by=actor_id,
                last_modified_at=now,
                created_by_id=actor_id,
            )
        )
        logger.info(
            "diagnosis_bonus_awarded",
            extra={
                "bike_id": str(bike.id),
                "mechanic_id": str(actor_id),
                "points": DIAGNOSIS_BONUS_POINTS,
            },
        )
        return True

    def _complete(self, reg: WorkRegistrationModel, actor_id: UUID, now: datetime) -> None:
        reg.completed = True
        reg.completed_at = now
        reg.mechanic_id = actor_id
        reg.last_modified_by = actor_id
        reg.last_modified_at = now
        self._ledger.consume(reg.repair_type_id, actor_id)

    def _force_complete(self, bike: BikeModel, actor_id: UUID, now: datetime) -> int:
        pending = self._pending(bike.id)
        for reg in pending:
            self._complete(reg, actor_id, now)
        if pending:
            logger.info(
                "registrations_force_completed",
                extra={"bike_id": str(bike.id), "count": len(pending)},
            )
        return len(pending)

    def _add_registrations(
        self,
        bike: BikeModel,
        repair_types: list[RepairTypeModel],
        actor_id: UUID,
        *,
        completed: bool,
    ) -> list[WorkRegistrationModel]:
        now = self.clock.now()
        regs = []
        for rt in repair_types:
            reg = WorkRegistrationModel(
                bike_id=bike.id,
                repair_type_id=rt.id,
                completed=False,
                last_modified_by=actor_id,
                last_modified_at=now,
                created_by_id=actor_id,
            )
            self.session.add(reg)
            if completed:
                self._complete(reg, actor_id, now)
            regs.append(reg)
        return regs

    def _add_comment(self, bike: BikeModel, content: str | None, actor_id: UUID) -> BikeCommentModel | None:
        if content is None or not content.strip():
            return None
        comment = BikeCommentModel(
            bike_id=bike.id,
            author_id=actor_id,
            content=content.strip(),
            created_by_id=actor_id,
        )
        self.session.add(comment)
        return comment

    # =========================================================================
    # Intake and diagnosis
    # =========================================================================

    def register_intake(
        self,
        frame_number: str,
        model: BikeModelCode | str,
        actor_id: UUID,
        *,
        repair_type_ids: Iterable[UUID] = (),
        diagnosis_complete: bool = True,
        is_sales_bike: bool = False,
        table_number: str | None = None,
        customer_phone: str | None = None,
        comment: str | None = None,
    ) -> Bike:
        """
        Register a bike arriving at the workshop.

        Initial status: sales bike -> ``in_reparatie`` with every selected
        repair already completed by the actor; incomplete diagnosis ->
        ``diagnose_nodig``; complete diagnosis -> ``wacht_op_akkoord``
        (diagnosis stamped, bonus awarded).
        """
        frame = (frame_number or "").strip()
        if not frame:
            raise ValidationError("frame_number", "required")
        try:
            model_code = BikeModelCode(model.value if isinstance(model, BikeModelCode) else model)
        except ValueError:
            raise ValidationError("model", f"unknown bike model: {model!r}") from None
        wanted = _unique(repair_type_ids)
        if not is_sales_bike and diagnosis_complete and not wanted:
            raise ValidationError("repair_type_ids", "a completed diagnosis needs at least one repair")

        with self._unit_of_work("register_intake", actor_id):
            self._profiles.require_active(actor_id)
            exists = self.session.execute(
                select(BikeModel.id).where(BikeModel.frame_number == frame)
            ).first()
            if exists is not None:
                raise DuplicateFrameNumberError(frame)
            repair_types = self._repair_types(wanted)

            bike = BikeModel(
                frame_number=frame,
                model=model_code.value,
                workflow_status=WorkflowStatus.DIAGNOSIS_NEEDED.value,
                is_sales_bike=is_sales_bike,
                table_number=_clean_table(table_number),
                customer_phone=customer_phone,
                created_by_id=actor_id,
            )
            if is_sales_bike:
                bike.workflow_status = WorkflowStatus.IN_REPAIR.value
                bike.current_mechanic_id = actor_id
            self.session.add(bike)
            self.session.flush()

            self._add_registrations(bike, repair_types, actor_id, completed=is_sales_bike)
            self._add_comment(bike, comment, actor_id)
            self.session.flush()
            if not is_sales_bike and diagnosis_complete:
                self._apply(bike, "complete_diagnosis", actor_id)

            logger.info(
                "bike_registered",
                extra={
                    "bike_id": str(bike.id),
                    "frame_number": frame,
                    "model": model_code.value,
                    "is_sales_bike": is_sales_bike,
                    "workflow_status": bike.workflow_status,
                    "registration_count": len(repair_types),
                },
            )
            return bike.to_dto()

    def record_diagnosis(
        self,
        bike_id: UUID,
        actor_id: UUID,
        *,
        repair_type_ids: Iterable[UUID] = (),
        diagnosis_complete: bool = True,
        table_number: str | None = None,
        comment: str | None = None,
    ) -> Bike:
        """Add diagnosed repairs to a bike still in diagnosis; optionally complete it."""
        wanted = _unique(repair_type_ids)
        with self._unit_of_work("record_diagnosis", actor_id), LogContext.bind(bike_id=bike_id):
            self._profiles.require_active(actor_id)
            bike = self._bike(bike_id)
            if WorkflowStatus(bike.workflow_status) not in DIAGNOSIS_STATUSES:
                raise InvalidTransitionError(
                    BIKE_WORKFLOW.name, bike.id, bike.workflow_status, "complete_diagnosis"
                )
            already = {reg.repair_type_id for reg in self._pending(bike.id)}
            new_types = [rt for rt in self._repair_types(wanted) if rt.id not in already]
            if diagnosis_complete and not (already or new_types):
                raise ValidationError("repair_type_ids", "a completed diagnosis needs at least one repair")

            self._add_registrations(bike, new_types, actor_id, completed=False)
            self._add_comment(bike, comment, actor_id)
            if table_number is not None:
                bike.table_number = _clean_table(table_number)
            bike.updated_by_id = actor_id
            self.session.flush()
            if diagnosis_complete:
                self._apply(bike, "complete_diagnosis", actor_id)

            logger.info(
                "diagnosis_recorded",
                extra={
                    "bike_id": str(bike.id),
                    "added_registrations": len(new_types),
                    "diagnosis_complete": diagnosis_complete,
                },
            )
            return bike.to_dto()

    # =========================================================================
    # Generic transitions
    # =========================================================================

    def transition(self, bike_id: UUID, action: str, actor_id: UUID) -> Bike:
        """
        Apply one ``BIKE_WORKFLOW`` action.

        ``finish`` and ``complete_diagnosis`` go through their dedicated
        operations; ``reopen`` is only reachable through ``assign_table``.
        """
        if action == "finish":
            return self.finish(bike_id, actor_id)
        if action == "complete_diagnosis":
            return self.record_diagnosis(bike_id, actor_id)

        with self._unit_of_work(f"transition:{action}", actor_id), LogContext.bind(bike_id=bike_id):
            self._profiles.require_active(actor_id)
            bike = self._bike(bike_id)
            if action in RESERVED_ACTIONS:
                raise InvalidTransitionError(
                    BIKE_WORKFLOW.name, bike.id, bike.workflow_status, action
                )
            self._apply(bike, action, actor_id)
            return bike.to_dto()

    def start_diagnosis(self, bike_id: UUID, actor_id: UUID) -> Bike:
        return self.transition(bike_id, "start_diagnosis", actor_id)

    def approve(self, bike_id: UUID, actor_id: UUID) -> Bike:
        """Record the customer's approval: the diagnosed repairs may now be done."""
        return self.transition(bike_id, "approve", actor_id)

    def order_parts(self, bike_id: UUID, actor_id: UUID) -> Bike:
        return self.transition(bike_id, "order_parts", actor_id)

    def await_parts(self, bike_id: UUID, actor_id: UUID) -> Bike:
        return self.transition(bike_id, "await_parts", actor_id)

    def parts_arrived(self, bike_id: UUID, actor_id: UUID) -> Bike:
        return self.transition(bike_id, "parts_arrived", actor_id)

    def claim(self, bike_id: UUID, actor_id: UUID) -> Bike:
        """Take the bike into repair as the acting mechanic."""
        return self.transition(bike_id, "claim", actor_id)

    def release(self, bike_id: UUID, actor_id: UUID) -> Bike:
        return self.transition(bike_id, "release", actor_id)

    def move_to(self, bike_id: UUID, target_status: WorkflowStatus | str, actor_id: UUID) -> Bike:
        """Move to ``target_status`` through the one action leading there."""
        try:
            target = WorkflowStatus.parse(target_status)
        except ValueError:
            raise InvalidWorkflowStatusError(target_status) from None
        bike = self._bike(bike_id)
        candidates = [
            t for t in BIKE_WORKFLOW.transitions
            if t.from_state == bike.workflow_status and t.to_state == target.value
        ]
        if not candidates:
            raise InvalidTransitionError(
                BIKE_WORKFLOW.name, bike.id, bike.workflow_status, f"move_to:{target.value}"
            )
        return self.transition(bike_id, candidates[0].action, actor_id)

    # =========================================================================
    # Repairs
    # =========================================================================

    def complete_repairs(
        self,
        bike_id: UUID,
        repair_type_ids: Iterable[UUID],
        actor_id: UUID,
    ) -> list[WorkRegistration]:
        """
        Mark repairs as done by the acting mechanic.

        Preconditions: the bike is ``klaar_voor_reparatie`` or
        ``in_reparatie``.  A ready bike is claimed first.  Sales bikes get
        new completed registrations; other bikes complete their matching
        pending ones.
        """
        wanted = _unique(repair_type_ids)
        if not wanted:
            raise ValidationError("repair_type_ids", "select at least one repair")

        with self._unit_of_work("complete_repairs", actor_id), LogContext.bind(bike_id=bike_id):
            self._profiles.require_active(actor_id)
            bike = self._bike(bike_id)
            status = WorkflowStatus(bike.workflow_status)
            if status not in REPAIRABLE_STATUSES:
                raise ApprovalRequiredError(bike.id, status.value)

            if bike.is_sales_bike:
                targets = None
            else:
                by_type = {reg.repair_type_id: reg for reg in self._pending(bike.id)}
                missing = [rt_id for rt_id in wanted if rt_id not in by_type]
                if missing:
                    raise ValidationError(
                        "repair_type_ids",
                        "no pending registration for: " + ", ".join(str(m) for m in missing),
                    )
                targets = [by_type[rt_id] for rt_id in wanted]

            if status == WorkflowStatus.READY_FOR_REPAIR:
                self._apply(bike, "claim", actor_id)
            elif bike.current_mechanic_id != actor_id:
                bike.current_mechanic_id = actor_id
                bike.mechanic_pinned = False

            if targets is None:
                done = self._add_registrations(
                    bike, self._repair_types(wanted), actor_id, completed=True
                )
            else:
                now = self.clock.now()
                for reg in targets:
                    self._complete(reg, actor_id, now)
                done = targets
            bike.updated_by_id = actor_id
            self.session.flush()

            logger.info(
                "repairs_completed",
                extra={
                    "bike_id": str(bike.id),
                    "mechanic_id": str(actor_id),
                    "count": len(done),
                    "is_sales_bike": bike.is_sales_bike,
                },
            )
            return [self._registration_dto(reg, bike) for reg in done]

    def delete_registration(self, registration_id: UUID, actor_id: UUID) -> None:
        """Remove a diagnosed repair that was not performed yet."""
        with self._unit_of_work("delete_registration", actor_id):
            self._profiles.require_active(actor_id)
            reg = self.session.get(WorkRegistrationModel, registration_id)
            if reg is None:
                raise RegistrationNotFoundError(registration_id)
            if reg.completed:
                raise RegistrationCompletedError(registration_id)
            self.session.delete(reg)
            self.session.flush()
            logger.info(
                "registration_deleted",
                extra={"registration_id": str(registration_id), "bike_id": str(reg.bike_id)},
            )

    # =========================================================================
    # Checklist and finish
    # =========================================================================

    def set_checklist_item(
        self,
        bike_id: UUID,
        item_id: UUID,
        completed: bool,
        actor_id: UUID,
    ) -> list[UUID]:
        """Tick or untick one checklist item.  Returns the still-open item ids."""
        with self._unit_of_work("set_checklist_item", actor_id):
            self._profiles.require_active(actor_id)
            bike = self._bike(bike_id)
            if self.session.get(ChecklistItemModel, item_id) is None:
                raise ChecklistItemNotFoundError(item_id)
            existing = self.session.execute(
                select(ChecklistCompletionModel).where(
                    ChecklistCompletionModel.bike_id == bike.id,
                    ChecklistCompletionModel.checklist_item_id == item_id,
                )
            ).scalar_one_or_none()
            if completed and existing is None:
                self.session.add(
                    ChecklistCompletionModel(
                        bike_id=bike.id,
                        checklist_item_id=item_id,
                        completed_by=actor_id,
                        completed_at=self.clock.now(),
                        created_by_id=actor_id,
                    )
                )
            elif not completed and existing is not None:
                self.session.delete(existing)
            self.session.flush()
            logger.info(
                "checklist_item_set",
                extra={"bike_id": str(bike.id), "item_id": str(item_id), "completed": completed},
            )
            return self._open_checklist_items(bike.id)

    def check_all_checklist_items(self, bike_id: UUID, actor_id: UUID) -> int:
        """Admin shortcut: tick every open active item.  Returns the number ticked."""
        with self._unit_of_work("check_all_checklist_items", actor_id):
            self._profiles.require_role(actor_id, "check all checklist items", ProfileRole.ADMIN)
            bike = self._bike(bike_id)
            now = self.clock.now()
            open_items = self._open_checklist_items(bike.id)
            for item_id in open_items:
                self.session.add(
                    ChecklistCompletionModel(
                        bike_id=bike.id,
                        checklist_item_id=item_id,
                        completed_by=actor_id,
                        completed_at=now,
                        created_by_id=actor_id,
                    )
                )
            self.session.flush()
            logger.info(
                "checklist_all_checked",
                extra={"bike_id": str(bike.id), "ticked": len(open_items)},
            )
            return len(open_items)

    def finish(self, bike_id: UUID, actor_id: UUID) -> Bike:
        """
        Complete the bike.

        Refused with ``ChecklistIncompleteError`` while any active checklist
        item is open; on success every pending registration is completed
        with the actor as mechanic and the status becomes ``afgerond``.
        """
        with self._unit_of_work("finish", actor_id), LogContext.bind(bike_id=bike_id):
            self._profiles.require_active(actor_id)
            bike = self._bike(bike_id)
            open_items = self._open_checklist_items(bike.id)
            self._apply(bike, "finish", actor_id, {"open_checklist_items": open_items})
            return bike.to_dto()

    # =========================================================================
    # Front-of-house tools
    # =========================================================================

    def assign_table(self, bike_id: UUID, table_number: str | None, actor_id: UUID) -> Bike:
        """Put a bike on a table (or take it off).  A finished bike put on a
        table is reopened to ``diagnose_nodig``."""
        table = _clean_table(table_number)
        with self._unit_of_work("assign_table", actor_id), LogContext.bind(bike_id=bike_id):
            self._profiles.require_active(actor_id)
            bike = self._bike(bike_id)
            previous = bike.table_number
            bike.table_number = table
            bike.updated_by_id = actor_id
            reopened = False
            if table is not None and bike.workflow_status == WorkflowStatus.COMPLETED.value:
                self._apply(bike, "reopen", actor_id)
                reopened = True
            self.session.flush()
            logger.info(
                "bike_table_assigned",
                extra={
                    "bike_id": str(bike.id),
                    "previous_table": previous,
                    "table_number": table,
                    "reopened": reopened,
                },
            )
            return bike.to_dto()

    def update_table_status(
        self,
        bike_id: UUID,
        actor_id: UUID,
        *,
        workflow_status: WorkflowStatus | str | None = None,
        call_status_id: UUID | None = _UNSET,
        customer_phone: str | None = _UNSET,
    ) -> Bike:
        """
        FOH override from the table grid.

        Sets any of the seven statuses without touching the mechanic.
        Entering ``afgerond`` still requires the checklist and completes
        pending registrations; leaving diagnosis for the first time still
        stamps the diagnosis.
        """
        target = None
        if workflow_status is not None:
            try:
                target = WorkflowStatus.parse(workflow_status)
            except ValueError:
                raise InvalidWorkflowStatusError(workflow_status) from None

        with self._unit_of_work("update_table_status", actor_id), LogContext.bind(bike_id=bike_id):
            self._profiles.require_role(actor_id, "update table status", *_STAFF_DESK_ROLES)
            bike = self._bike(bike_id)
            current = WorkflowStatus(bike.workflow_status)
            now = self.clock.now()

            if target is not None and target != current:
                if target == WorkflowStatus.COMPLETED:
                    open_items = self._open_checklist_items(bike.id)
                    if open_items:
                        raise ChecklistIncompleteError(bike.id, open_items)
                    self._force_complete(bike, actor_id, now)
                if current in DIAGNOSIS_STATUSES and target not in DIAGNOSIS_STATUSES:
                    self._stamp_diagnosis(bike, actor_id, now)
                bike.workflow_status = target.value
            if call_status_id is not _UNSET:
                if call_status_id is not None and self.session.get(CallStatusModel, call_status_id) is None:
                    raise ValidationError("call_status_id", f"unknown call status {call_status_id}")
                bike.call_status_id = call_status_id
            if customer_phone is not _UNSET:
                bike.customer_phone = customer_phone
            bike.updated_by_id = actor_id
            self.session.flush()

            logger.info(
                "bike_table_status_updated",
                extra={
                    "bike_id": str(bike.id),
                    "from_state": current.value,
                    "to_state": bike.workflow_status,
                    "call_status_id": str(bike.call_status_id) if bike.call_status_id else None,
                },
            )
            return bike.to_dto()

    def assign_mechanic(self, bike_id: UUID, mechanic_id: UUID | None, actor_id: UUID) -> Bike:
        """Explicit FOH/admin assignment; pinned until the next claim."""
        with self._unit_of_work("assign_mechanic", actor_id), LogContext.bind(bike_id=bike_id):
            self._profiles.require_role(actor_id, "assign mechanic", *_STAFF_DESK_ROLES)
            bike = self._bike(bike_id)
            if mechanic_id is not None:
                self._profiles.require_active(mechanic_id)
            bike.current_mechanic_id = mechanic_id
            bike.mechanic_pinned = mechanic_id is not None
            bike.updated_by_id = actor_id
            self.session.flush()
            logger.info(
                "bike_mechanic_assigned",
                extra={
                    "bike_id": str(bike.id),
                    "mechanic_id": str(mechanic_id) if mechanic_id else None,
                },
            )
            return bike.to_dto()

    def add_comment(self, bike_id: UUID, content: str, actor_id: UUID) -> BikeComment:
        if not content or not content.strip():
            raise ValidationError("content", "required")
        with self._unit_of_work("add_comment", actor_id):
            self._profiles.require_active(actor_id)
            bike = self._bike(bike_id)
            comment = self._add_comment(bike, content, actor_id)
            self.session.flush()
            logger.info("bike_comment_added", extra={"bike_id": str(bike.id)})
            return comment.to_dto()

    def register_call(
        self,
        bike_id: UUID,
        actor_id: UUID,
        *,
        notes: str | None = None,
        call_status_id: UUID | None = _UNSET,
    ) -> CallRecord:
        """Log a customer call, optionally updating the bike's call status."""
        with self._unit_of_work("register_call", actor_id):
            self._profiles.require_active(actor_id)
            bike = self._bike(bike_id)
            if call_status_id is not _UNSET:
                if call_status_id is not None and self.session.get(CallStatusModel, call_status_id) is None:
                    raise ValidationError("call_status_id", f"unknown call status {call_status_id}")
                bike.call_status_id = call_status_id
            call = BikeCallModel(
                bike_id=bike.id,
                called_by=actor_id,
                called_at=self.clock.now(),
                notes=notes.strip() if notes and notes.strip() else None,
                created_by_id=actor_id,
            )
            self.session.add(call)
            self.session.flush()
            logger.info("bike_call_registered", extra={"bike_id": str(bike.id), "call_id": str(call.id)})
            return call.to_dto()

    def delete_call(self, call_id: UUID, actor_id: UUID) -> None:
        with self._unit_of_work("delete_call", actor_id):
            self._profiles.require_active(actor_id)
            call = self.session.get(BikeCallModel, call_id)
            if call is None:
                raise CallRecordNotFoundError(call_id)
            self.session.delete(call)
            self.session.flush()
            logger.info("bike_call_deleted", extra={"call_id": str(call_id)})

    # =========================================================================
    # Call status labels (admin)
    # =========================================================================

    def _call_status(self, call_status_id: UUID) -> CallStatusModel:
        status = self.session.get(CallStatusModel, call_status_id)
        if status is None:
            raise CallStatusNotFoundError(call_status_id)
        return status

    def create_call_status(
        self,
        name: str,
        actor_id: UUID,
        *,
        color: str = "#808080",
        name_en: str | None = None,
        sort_order: int | None = None,
    ) -> CallStatus:
        """Add a label; without ``sort_order`` it goes to the end of the list."""
        clean = (name or "").strip()
        if not clean:
            raise ValidationError("name", "required")
        with self._unit_of_work("create_call_status", actor_id):
            self._profiles.require_role(actor_id, "manage call statuses", ProfileRole.ADMIN)
            if sort_order is None:
                highest = self.session.execute(select(func.max(CallStatusModel.sort_order))).scalar()
                sort_order = 0 if highest is None else highest + 1
            status = CallStatusModel(
                name=clean,
                name_en=(name_en or "").strip() or None,
                color=color,
                sort_order=sort_order,
                is_active=True,
                created_by_id=actor_id,
            )
            self.session.add(status)
            self.session.flush()
            logger.info(
                "call_status_created",
                extra={"call_status_id": str(status.id), "status_name": clean, "sort_order": sort_order},
            )
            return status.to_dto()

    def update_call_status(
        self,
        call_status_id: UUID,
        actor_id: UUID,
        *,
        name: str = _UNSET,
        name_en: str | None = _UNSET,
        color: str = _UNSET,
        sort_order: int = _UNSET,
        is_active: bool = _UNSET,
    ) -> CallStatus:
        with self._unit_of_work("update_call_status", actor_id):
            self._profiles.require_role(actor_id, "manage call statuses", ProfileRole.ADMIN)
            status = self._call_status(call_status_id)
            if name is not _UNSET:
                clean = (name or "").strip()
                if not clean:
                    raise ValidationError("name", "required")
                status.name = clean
            if name_en is not _UNSET:
                status.name_en = (name_en or "").strip() or None
            if color is not _UNSET:
                status.color = color
            if sort_order is not _UNSET:
                status.sort_order = sort_order
            if is_active is not _UNSET:
                status.is_active = is_active
            status.updated_by_id = actor_id
            self.session.flush()
            logger.info("call_status_updated", extra={"call_status_id": str(status.id)})
            return status.to_dto()

    def delete_call_status(self, call_status_id: UUID, actor_id: UUID) -> int:
        """Remove a label; bikes showing it fall back to no call status. Returns that bike count."""
        with self._unit_of_work("delete_call_status", actor_id):
            self._profiles.require_role(actor_id, "manage call statuses", ProfileRole.ADMIN)
            status = self._call_status(call_status_id)
            cleared = self.session.execute(
                update(BikeModel)
                .where(BikeModel.call_status_id == status.id)
                .values(call_status_id=None, updated_by_id=actor_id)
                .execution_options(synchronize_session="fetch")
            ).rowcount
            self.session.delete(status)
            self.session.flush()
            logger.info(
                "call_status_deleted",
                extra={"call_status_id": str(call_status_id), "bikes_cleared": cleared},
            )
            return cleared

    # =========================================================================
    # Admin bulk operations
    # =========================================================================

    def _delete_bikes(self, bike_ids: list[UUID]) -> dict[str, int]:
        removed: dict[str, int] = {}
        if not bike_ids:
            return removed
        self.session.execute(
            update(FohTaskModel)
            .where(FohTaskModel.bike_id.in_(bike_ids))
            .values(bike_id=None)
            .execution_options(synchronize_session="fetch")
        )
        for label, model in (
            ("work_registrations", WorkRegistrationModel),
            ("bike_comments", BikeCommentModel),
            ("bike_call_history", BikeCallModel),
            ("bike_checklist_completions", ChecklistCompletionModel),
        ):
            removed[label] = self.session.execute(
                delete(model).where(model.bike_id.in_(bike_ids))
            ).rowcount
        removed["bikes"] = self.session.execute(
            delete(BikeModel).where(BikeModel.id.in_(bike_ids))
        ).rowcount
        return removed

    def delete_bike(self, bike_id: UUID, actor_id: UUID) -> dict[str, int]:
        """Delete a bike with all its children in one transaction."""
        with self._unit_of_work("delete_bike", actor_id):
            self._profiles.require_role(actor_id, "delete bikes", ProfileRole.ADMIN)
            self._bike(bike_id)
            removed = self._delete_bikes([bike_id])
            logger.info("bike_deleted", extra={"bike_id": str(bike_id), "removed": removed})
            return removed

    def delete_bikes_without_table(self, actor_id: UUID) -> dict[str, int]:
        with self._unit_of_work("delete_bikes_without_table", actor_id):
            self._profiles.require_role(actor_id, "delete bikes", ProfileRole.ADMIN)
            bike_ids = list(
                self.session.execute(
                    select(BikeModel.id).where(BikeModel.table_number.is_(None))
                ).scalars()
            )
            removed = self._delete_bikes(bike_ids)
            logger.info("bikes_without_table_deleted", extra={"removed": removed})
            return removed

    def clear_all_tables(self, actor_id: UUID) -> int:
        """Take every bike off its table.  Returns the number of bikes moved."""
        with self._unit_of_work("clear_all_tables", actor_id):
            self._profiles.require_role(actor_id, "clear tables", ProfileRole.ADMIN)
            cleared = self.session.execute(
                update(BikeModel)
                .where(BikeModel.table_number.is_not(None))
                .values(table_number=None, updated_by_id=actor_id)
                .execution_options(synchronize_session="fetch")
            ).rowcount
            logger.info("tables_cleared", extra={"bike_count": cleared})
            return cleared
