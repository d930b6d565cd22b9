"""
Module: roster_kernel.models.course
Responsibility: ORM persistence for courses created from classes.csv.

Invariants enforced:
    - sourced_id is unique (uq_course_sourced_id).
    - organization_id always references the class's resolved school.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from roster_kernel.db.base import TrackedBase, UUIDString


class CourseModel(TrackedBase):
    """A course in the target system, one per OneRoster class."""

    __tablename__ = "courses"

    __table_args__ = (
        UniqueConstraint("sourced_id", name="uq_course_sourced_id"),
        Index("idx_course_organization", "organization_id"),
    )

    sourced_id: Mapped[str] = mapped_column(String(255), nullable=False)

    fullname: Mapped[str] = mapped_column(String(255), nullable=False)
    shortname: Mapped[str] = mapped_column(String(255), nullable=False)

    class_type: Mapped[str | None] = mapped_column(String(20), nullable=True)

    organization_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("organizations.id"),
        nullable=False,
    )

    # Academic session lookup (not a synchronized entity)
    term_sourced_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    term_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    def __repr__(self) -> str:
        return f"<Course {self.sourced_id}: {self.fullname}>"
