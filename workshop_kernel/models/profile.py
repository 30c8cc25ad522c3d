"""
Module: workshop_kernel.models.profile
Responsibility: ORM persistence for workshop staff (mechanics, front-of-house,
    admins).  A profile id is the stable user id recorded as mechanic,
    creator, assignee and approver throughout the modules.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - email is unique.
    - role is one of ProfileRole.
    - Only active profiles can be assigned work.
"""

from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from workshop_kernel.db.base import TrackedBase


# Creator id for rows installed by seeding rather than by a staff member.
SYSTEM_ACTOR_ID = UUID(int=0)


class ProfileRole(str, Enum):
    MECHANIC = "monteur"
    ADMIN = "admin"
    FRONT_OF_HOUSE = "foh"


class Profile(TrackedBase):
    """A member of the workshop staff."""

    __tablename__ = "profiles"

    __table_args__ = (
        UniqueConstraint("email", name="uq_profile_email"),
        Index("idx_profile_role", "role"),
        Index("idx_profile_active", "is_active"),
    )

    full_name: Mapped[str] = mapped_column(String(200), nullable=False)

    email: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ProfileRole.MECHANIC.value,
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # New sign-ups wait for an admin before they may act.
    is_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    @property
    def is_admin(self) -> bool:
        return self.role == ProfileRole.ADMIN.value

    @property
    def can_act(self) -> bool:
        return self.is_active and self.is_approved

    def __repr__(self) -> str:
        return f"<Profile {self.full_name} ({self.role})>"
