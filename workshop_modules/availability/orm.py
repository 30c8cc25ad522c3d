"""
Module: workshop_modules.availability.orm
Responsibility: SQLAlchemy ORM persistence for mechanic availability
    requests.

Architecture position: Modules > Availability > ORM.  Inherits from
    TrackedBase.

Invariants enforced:
    - end_time is after start_time (ck_availability_time_range).
    - status is one of pending / approved / rejected.
"""

from datetime import date, datetime, time
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column

from workshop_kernel.db.base import TrackedBase
from workshop_modules.availability.models import AVAILABILITY_STATUS_VALUES


class MechanicAvailabilityModel(TrackedBase):
    """
    ORM model for a requested working interval.

    Maps to: workshop_modules.availability.models.Availability.
    """

    __tablename__ = "mechanic_availability"

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_availability_time_range"),
        CheckConstraint(
            "status IN ({})".format(", ".join(f"'{v}'" for v in AVAILABILITY_STATUS_VALUES)),
            name="ck_availability_status",
        ),
        Index("idx_availability_user_date", "user_id", "date"),
        Index("idx_availability_date", "date"),
    )

    user_id: Mapped[UUID] = mapped_column(ForeignKey("profiles.id"))
    date: Mapped[date] = mapped_column(Date)
    start_time: Mapped[time] = mapped_column(Time)
    end_time: Mapped[time] = mapped_column(Time)
    status: Mapped[str] = mapped_column(String(20), default="pending")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_by: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def to_dto(self):
        from workshop_modules.availability.models import Availability, AvailabilityStatus
        return Availability(
            id=self.id,
            user_id=self.user_id,
            date=self.date,
            start_time=self.start_time,
            end_time=self.end_time,
            status=AvailabilityStatus(self.status),
            notes=self.notes,
            approved_by=self.approved_by,
            approved_at=self.approved_at,
        )
