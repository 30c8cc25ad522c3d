"""Mechanic availability read models: per user, per week, approved hours."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from uuid import UUID

from sqlalchemy import select

from workshop_kernel.selectors.base import BaseSelector
from workshop_modules.availability.models import (
    Availability,
    AvailabilityStatus,
    DayHours,
    MechanicHours,
    net_minutes,
)
from workshop_modules.availability.orm import MechanicAvailabilityModel

_M = MechanicAvailabilityModel


def week_start(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


class AvailabilitySelector(BaseSelector):

    def _between(self, start: date, end: date, user_id: UUID | None = None) -> list[Availability]:
        stmt = select(_M).where(_M.date >= start, _M.date <= end)
        if user_id is not None:
            stmt = stmt.where(_M.user_id == user_id)
        rows = self.session.execute(stmt.order_by(_M.date, _M.start_time)).scalars()
        return [r.to_dto() for r in rows]

    def for_user(self, user_id: UUID, start: date | None = None, end: date | None = None) -> list[Availability]:
        stmt = select(_M).where(_M.user_id == user_id)
        if start is not None:
            stmt = stmt.where(_M.date >= start)
        if end is not None:
            stmt = stmt.where(_M.date <= end)
        rows = self.session.execute(stmt.order_by(_M.date, _M.start_time)).scalars()
        return [r.to_dto() for r in rows]

    def for_week(self, day: date, user_id: UUID | None = None) -> list[Availability]:
        """All requests in the Monday-to-Sunday week containing ``day``."""
        monday = week_start(day)
        return self._between(monday, monday + timedelta(days=6), user_id)

    def pending(self) -> list[Availability]:
        rows = self.session.execute(
            select(_M)
            .where(_M.status == AvailabilityStatus.PENDING.value)
            .order_by(_M.date, _M.start_time)
        ).scalars()
        return [r.to_dto() for r in rows]

    def approved_hours(self, start: date, end: date) -> list[MechanicHours]:
        """Approved working time per mechanic between ``start`` and ``end`` inclusive."""
        per_user: dict[UUID, list[DayHours]] = defaultdict(list)
        for a in self._between(start, end):
            if a.status == AvailabilityStatus.APPROVED:
                per_user[a.user_id].append(DayHours(a.date, net_minutes(a.start_time, a.end_time)))
        return [
            MechanicHours(user_id=user_id, days=tuple(days))
            for user_id, days in sorted(per_user.items(), key=lambda kv: str(kv[0]))
        ]
