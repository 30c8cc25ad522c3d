"""Kernel-owned ORM models."""

from workshop_kernel.models.profile import SYSTEM_ACTOR_ID, Profile, ProfileRole
from workshop_kernel.models.settings import AdminSetting

__all__ = ["SYSTEM_ACTOR_ID", "Profile", "ProfileRole", "AdminSetting"]
