"""
Module: roster_kernel.models.organization
Responsibility: ORM persistence for synchronized organizations (districts,
    schools, departments).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - sourced_id is unique (uq_organization_sourced_id); it is the upsert key.
    - parent_id, when set, points at an organization that already exists.
      The reconciliation engine never writes a dangling parent pointer.
"""

from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from roster_kernel.db.base import TrackedBase, UUIDString


class OrganizationModel(TrackedBase):
    """An organization synchronized from orgs.csv."""

    __tablename__ = "organizations"

    __table_args__ = (
        UniqueConstraint("sourced_id", name="uq_organization_sourced_id"),
        Index("idx_organization_parent", "parent_id"),
    )

    sourced_id: Mapped[str] = mapped_column(String(255), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # OneRoster org type: school, district, department, local, state, national
    org_type: Mapped[str] = mapped_column(String(20), nullable=False)

    identifier: Mapped[str | None] = mapped_column(String(255), nullable=True)

    parent_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("organizations.id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Organization {self.sourced_id}: {self.name} ({self.org_type})>"
