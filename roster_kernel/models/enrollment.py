"""
Module: roster_kernel.models.enrollment
Responsibility: ORM persistence for user-in-course enrollments.

Invariants enforced:
    - At most one enrollment per (user_id, course_id)
      (uq_enrollment_user_course).  A second enrollment row for the same pair
      updates the role instead of inserting.
    - user_id and course_id always reference rows written earlier in the
      same sync run or in a previous one.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from roster_kernel.db.base import TrackedBase, UUIDString


class EnrollmentModel(TrackedBase):
    """A user's enrollment in a course with a role."""

    __tablename__ = "enrollments"

    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),
        Index("idx_enrollment_course", "course_id"),
    )

    user_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("users.id"),
        nullable=False,
    )

    course_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("courses.id"),
        nullable=False,
    )

    role: Mapped[str] = mapped_column(String(50), nullable=False)

    # sourcedId of the enrollment row last applied to this pair
    sourced_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    begin_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    def __repr__(self) -> str:
        return f"<Enrollment user={self.user_id} course={self.course_id} role={self.role}>"
