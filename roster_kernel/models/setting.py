"""
Module: roster_kernel.models.setting
Responsibility: Key/value settings persisted by the sync tooling (for
    example the last selected organization scope).
"""

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from roster_kernel.db.base import TrackedBase


class SyncSettingModel(TrackedBase):
    """One named setting."""

    __tablename__ = "sync_settings"

    __table_args__ = (UniqueConstraint("key", name="uq_sync_setting_key"),)

    key: Mapped[str] = mapped_column(String(100), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
