"""
ProfileService -- staff profiles and role checks.

Responsibility:
    Registers staff, lets admins approve/deactivate them and change roles,
    and gives module services one place to resolve "may this actor do X".

Flush-only: the calling service owns the transaction boundary.
"""

from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from workshop_kernel.exceptions import (
    InactiveProfileError,
    ProfileNotFoundError,
    UnauthorizedActorError,
    ValidationError,
)
from workshop_kernel.logging_config import get_logger
from workshop_kernel.models.profile import Profile, ProfileRole

logger = get_logger("services.profile")


class ProfileService:
    def __init__(self, session: Session):
        self._session = session

    def register(
        self,
        full_name: str,
        email: str,
        role: ProfileRole = ProfileRole.MECHANIC,
        *,
        profile_id: UUID | None = None,
        created_by_id: UUID | None = None,
        approved: bool = False,
    ) -> Profile:
        """Create a profile.  Self-registration records the profile as its own creator."""
        if not full_name or not full_name.strip():
            raise ValidationError("full_name", "required")
        if not email or "@" not in email:
            raise ValidationError("email", "a valid address is required")

        new_id = profile_id or uuid4()
        profile = Profile(
            id=new_id,
            full_name=full_name.strip(),
            email=email.strip().lower(),
            role=ProfileRole(role).value,
            is_active=True,
            is_approved=approved,
            created_by_id=created_by_id or new_id,
        )
        self._session.add(profile)
        self._session.flush()

        logger.info(
            "profile_registered",
            extra={"profile_id": str(profile.id), "role": profile.role},
        )
        return profile

    def get(self, profile_id: UUID) -> Profile:
        profile = self._session.get(Profile, profile_id)
        if profile is None:
            raise ProfileNotFoundError(profile_id)
        return profile

    def require_active(self, profile_id: UUID) -> Profile:
        profile = self.get(profile_id)
        if not profile.is_active:
            raise InactiveProfileError(profile_id)
        return profile

    def is_admin(self, actor_id: UUID) -> bool:
        profile = self._session.get(Profile, actor_id)
        return profile is not None and profile.is_active and profile.is_admin

    def require_role(self, actor_id: UUID, action: str, *roles: ProfileRole) -> Profile:
        profile = self._session.get(Profile, actor_id)
        if profile is None or not profile.is_active:
            raise UnauthorizedActorError(actor_id, action, "no active profile")
        allowed = {ProfileRole(r).value for r in roles}
        if profile.role not in allowed:
            raise UnauthorizedActorError(
                actor_id, action, f"requires role {' or '.join(sorted(allowed))}"
            )
        return profile

    def approve(self, profile_id: UUID, actor_id: UUID) -> Profile:
        self.require_role(actor_id, "approve profiles", ProfileRole.ADMIN)
        profile = self.get(profile_id)
        profile.is_approved = True
        profile.updated_by_id = actor_id
        self._session.flush()
        logger.info("profile_approved", extra={"profile_id": str(profile_id)})
        return profile

    def set_active(self, profile_id: UUID, active: bool, actor_id: UUID) -> Profile:
        self.require_role(actor_id, "change profile status", ProfileRole.ADMIN)
        profile = self.get(profile_id)
        profile.is_active = active
        profile.updated_by_id = actor_id
        self._session.flush()
        logger.info(
            "profile_activation_changed",
            extra={"profile_id": str(profile_id), "is_active": active},
        )
        return profile

    def change_role(self, profile_id: UUID, role: ProfileRole, actor_id: UUID) -> Profile:
        self.require_role(actor_id, "change roles", ProfileRole.ADMIN)
        profile = self.get(profile_id)
        profile.role = ProfileRole(role).value
        profile.updated_by_id = actor_id
        self._session.flush()
        logger.info(
            "profile_role_changed",
            extra={"profile_id": str(profile_id), "role": profile.role},
        )
        return profile

    def active_profiles(self) -> list[Profile]:
        return list(
            self._session.execute(
                select(Profile)
                .where(Profile.is_active.is_(True))
                .order_by(Profile.full_name)
            ).scalars()
        )
