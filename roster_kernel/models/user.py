"""
Module: roster_kernel.models.user
Responsibility: ORM persistence for user accounts created or updated from
    users.csv.

Invariants enforced:
    - username is unique (uq_user_username).
    - sourced_id is unique when present (uq_user_sourced_id).  Accounts that
      exist in the target system before any sync carry no sourced_id; the
      engine adopts them by username on first sync.
"""

from sqlalchemy import Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from roster_kernel.db.base import TrackedBase


class UserModel(TrackedBase):
    """A user account in the target system."""

    __tablename__ = "users"

    __table_args__ = (
        UniqueConstraint("username", name="uq_user_username"),
        UniqueConstraint("sourced_id", name="uq_user_sourced_id"),
    )

    sourced_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    username: Mapped[str] = mapped_column(String(100), nullable=False)

    role: Mapped[str] = mapped_column(String(20), nullable=False)

    given_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    family_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    identifier: Mapped[str | None] = mapped_column(String(255), nullable=True)

    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.role})>"
