"""
Mechanic Availability Service (``workshop_modules.availability.service``).

Responsibility
--------------
Mechanics request working intervals (one day or many at once) and edit or
withdraw them; admins approve or reject them and may correct times.

Invariants enforced
-------------------
* End time is after start time.
* An owner's edit puts the request back to ``pending``; an admin's edit
  keeps its status.
* Owners delete only pending requests; admins delete any.
* Each public method owns its transaction boundary.
"""

from __future__ import annotations

from datetime import date, time
from typing import Any, Iterable
from uuid import UUID

from sqlalchemy.orm import Session

from workshop_kernel.domain.clock import Clock
from workshop_kernel.exceptions import (
    AvailabilityDecidedError,
    AvailabilityNotFoundError,
    InvalidTimeRangeError,
    UnauthorizedActorError,
    ValidationError,
)
from workshop_kernel.logging_config import get_logger
from workshop_kernel.models.profile import ProfileRole
from workshop_kernel.services.base import BaseService
from workshop_kernel.services.profile_service import ProfileService
from workshop_modules.availability.models import Availability, AvailabilityStatus
from workshop_modules.availability.orm import MechanicAvailabilityModel

logger = get_logger("modules.availability.service")

_UNSET: Any = object()


def _check_range(start_time: time, end_time: time) -> None:
    if end_time <= start_time:
        raise InvalidTimeRangeError(start_time, end_time)


def _clean_notes(notes: str | None) -> str | None:
    if notes is None:
        return None
    return notes.strip() or None


class AvailabilityService(BaseService):

    def __init__(self, session: Session, clock: Clock | None = None, auto_commit: bool = True):
        super().__init__(session, clock, auto_commit)
        self._profiles = ProfileService(session)

    def _get(self, availability_id: UUID) -> MechanicAvailabilityModel:
        row = self.session.get(MechanicAvailabilityModel, availability_id)
        if row is None:
            raise AvailabilityNotFoundError(availability_id)
        return row

    def request(
        self,
        user_id: UUID,
        day: date,
        start_time: time,
        end_time: time,
        notes: str | None = None,
    ) -> Availability:
        _check_range(start_time, end_time)
        with self._unit_of_work("request_availability", user_id):
            self._profiles.require_active(user_id)
            row = MechanicAvailabilityModel(
                user_id=user_id,
                date=day,
                start_time=start_time,
                end_time=end_time,
                status=AvailabilityStatus.PENDING.value,
                notes=_clean_notes(notes),
                created_by_id=user_id,
            )
            self.session.add(row)
            self.session.flush()
            logger.info(
                "availability_requested",
                extra={"availability_id": str(row.id), "user_id": str(user_id), "date": day},
            )
            return row.to_dto()

    def request_many(
        self,
        user_id: UUID,
        days: Iterable[date],
        start_time: time,
        end_time: time,
        notes: str | None = None,
    ) -> list[Availability]:
        """Request the same interval on several days, all or nothing."""
        day_list = sorted(set(days))
        if not day_list:
            raise ValidationError("days", "select at least one day")
        _check_range(start_time, end_time)
        with self._unit_of_work("request_availability_many", user_id):
            self._profiles.require_active(user_id)
            rows = [
                MechanicAvailabilityModel(
                    user_id=user_id,
                    date=day,
                    start_time=start_time,
                    end_time=end_time,
                    status=AvailabilityStatus.PENDING.value,
                    notes=_clean_notes(notes),
                    created_by_id=user_id,
                )
                for day in day_list
            ]
            self.session.add_all(rows)
            self.session.flush()
            logger.info(
                "availability_requested_many",
                extra={"user_id": str(user_id), "day_count": len(rows)},
            )
            return [r.to_dto() for r in rows]

    def update(
        self,
        availability_id: UUID,
        actor_id: UUID,
        *,
        day: date | None = None,
        start_time: time | None = None,
        end_time: time | None = None,
        notes: str | None = _UNSET,
    ) -> Availability:
        with self._unit_of_work("update_availability", actor_id):
            row = self._get(availability_id)
            is_admin = self._profiles.is_admin(actor_id)
            if row.user_id != actor_id and not is_admin:
                raise UnauthorizedActorError(actor_id, "update availability", "only the owner or an admin")
            new_start = start_time or row.start_time
            new_end = end_time or row.end_time
            _check_range(new_start, new_end)
            if day is not None:
                row.date = day
            row.start_time = new_start
            row.end_time = new_end
            if notes is not _UNSET:
                row.notes = _clean_notes(notes)
            if row.user_id == actor_id:
                row.status = AvailabilityStatus.PENDING.value
                row.approved_by = None
                row.approved_at = None
            row.updated_by_id = actor_id
            self.session.flush()
            logger.info(
                "availability_updated",
                extra={"availability_id": str(row.id), "status": row.status},
            )
            return row.to_dto()

    def decide(
        self,
        availability_id: UUID,
        status: AvailabilityStatus | str,
        actor_id: UUID,
    ) -> Availability:
        """Approve or reject a request (admin only)."""
        decision = AvailabilityStatus(status)
        if decision == AvailabilityStatus.PENDING:
            raise ValidationError("status", "a decision is approved or rejected")
        with self._unit_of_work("decide_availability", actor_id):
            self._profiles.require_role(actor_id, "decide availability", ProfileRole.ADMIN)
            row = self._get(availability_id)
            row.status = decision.value
            row.approved_by = actor_id
            row.approved_at = self.clock.now()
            row.updated_by_id = actor_id
            self.session.flush()
            logger.info(
                "availability_decided",
                extra={"availability_id": str(row.id), "status": decision.value},
            )
            return row.to_dto()

    def delete(self, availability_id: UUID, actor_id: UUID) -> None:
        with self._unit_of_work("delete_availability", actor_id):
            row = self._get(availability_id)
            if not self._profiles.is_admin(actor_id):
                if row.user_id != actor_id:
                    raise UnauthorizedActorError(actor_id, "delete availability", "only the owner or an admin")
                if row.status != AvailabilityStatus.PENDING.value:
                    raise AvailabilityDecidedError(availability_id, row.status)
            self.session.delete(row)
            self.session.flush()
            logger.info("availability_deleted", extra={"availability_id": str(availability_id)})
