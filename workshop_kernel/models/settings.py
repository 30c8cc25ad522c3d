"""
Module: workshop_kernel.models.settings
Responsibility: Key/value store for shop-wide preference flags
    (e.g. ``show_stock_warnings``) edited from the admin screens.
"""

from uuid import UUID

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from workshop_kernel.db.base import Base, UUIDString


class AdminSetting(Base):
    """One named setting; values are stored as text."""

    __tablename__ = "admin_settings"

    __table_args__ = (
        UniqueConstraint("setting_key", name="uq_admin_setting_key"),
    )

    setting_key: Mapped[str] = mapped_column(String(100), nullable=False)

    setting_value: Mapped[str] = mapped_column(Text, nullable=False)

    updated_by: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
