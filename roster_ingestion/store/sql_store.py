"""
SQLAlchemy implementation of the TargetStore protocol.

Every upsert runs inside its own SAVEPOINT so the existence check and the
insert/update commit or roll back together.  The caller owns the outer
transaction (see roster_kernel.db.engine.session_scope).
"""

from __future__ import annotations

from typing import Any, Mapping
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from roster_kernel.logging_config import get_logger
from roster_kernel.models import CourseModel, EnrollmentModel, OrganizationModel, UserModel

from roster_ingestion.domain.types import (
    ENTITY_COURSE,
    ENTITY_ENROLLMENT,
    ENTITY_ORGANIZATION,
    ENTITY_USER,
)
from roster_ingestion.store.base import StoredUser, UpsertResult

logger = get_logger("ingestion.sql_store")

_ORG_FIELDS = frozenset({"name", "org_type", "identifier", "parent_id"})
_USER_FIELDS = frozenset({"username", "role", "given_name", "family_name", "email", "identifier", "enabled"})
_COURSE_FIELDS = frozenset({
    "fullname", "shortname", "class_type", "organization_id",
    "term_sourced_id", "term_title", "start_date", "end_date",
})
_ENROLLMENT_FIELDS = frozenset({"role", "sourced_id", "is_primary", "begin_date", "end_date"})


def _apply(entity: Any, attributes: Mapping[str, Any], allowed: frozenset[str]) -> None:
    unknown = set(attributes) - allowed
    if unknown:
        raise ValueError(f"Unknown attribute(s) for {type(entity).__name__}: {sorted(unknown)}")
    for key, value in attributes.items():
        setattr(entity, key, value)


def _to_stored_user(user: UserModel | None) -> StoredUser | None:
    if user is None:
        return None
    return StoredUser(entity_id=user.id, username=user.username, sourced_id=user.sourced_id)


class SqlTargetStore:
    """TargetStore backed by the roster_kernel ORM models."""

    def __init__(self, session: Session):
        self._session = session

    # -------------------------------------------------------------------------
    # Upserts
    # -------------------------------------------------------------------------

    def upsert_organization(self, sourced_id: str, attributes: Mapping[str, Any]) -> UpsertResult:
        with self._session.begin_nested():
            org = self._session.scalars(
                select(OrganizationModel).where(OrganizationModel.sourced_id == sourced_id)
            ).first()
            created = org is None
            if created:
                org = OrganizationModel(sourced_id=sourced_id)
                self._session.add(org)
            _apply(org, attributes, _ORG_FIELDS)
            self._session.flush()
        return UpsertResult(entity_id=org.id, created=created)

    def upsert_user(self, sourced_id: str, attributes: Mapping[str, Any]) -> UpsertResult:
        with self._session.begin_nested():
            user = self._session.scalars(
                select(UserModel).where(UserModel.sourced_id == sourced_id)
            ).first()
            if user is None and attributes.get("username"):
                # Adopt an account that predates the sync and has no sourcedId
                user = self._session.scalars(
                    select(UserModel).where(
                        UserModel.username == attributes["username"],
                        UserModel.sourced_id.is_(None),
                    )
                ).first()
                if user is not None:
                    logger.info("user_adopted", extra={"sourced_id": sourced_id, "username": user.username})
                    user.sourced_id = sourced_id
            created = user is None
            if created:
                user = UserModel(sourced_id=sourced_id)
                self._session.add(user)
            _apply(user, attributes, _USER_FIELDS)
            self._session.flush()
        return UpsertResult(entity_id=user.id, created=created)

    def upsert_course(self, sourced_id: str, attributes: Mapping[str, Any]) -> UpsertResult:
        with self._session.begin_nested():
            course = self._session.scalars(
                select(CourseModel).where(CourseModel.sourced_id == sourced_id)
            ).first()
            created = course is None
            if created:
                course = CourseModel(sourced_id=sourced_id)
                self._session.add(course)
            _apply(course, attributes, _COURSE_FIELDS)
            self._session.flush()
        return UpsertResult(entity_id=course.id, created=created)

    def upsert_enrollment(self, user_id: UUID, course_id: UUID, attributes: Mapping[str, Any]) -> UpsertResult:
        with self._session.begin_nested():
            enrollment = self._session.scalars(
                select(EnrollmentModel).where(
                    EnrollmentModel.user_id == user_id,
                    EnrollmentModel.course_id == course_id,
                )
            ).first()
            created = enrollment is None
            if created:
                enrollment = EnrollmentModel(user_id=user_id, course_id=course_id)
                self._session.add(enrollment)
            _apply(enrollment, attributes, _ENROLLMENT_FIELDS)
            self._session.flush()
        return UpsertResult(entity_id=enrollment.id, created=created)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def find_user_by_sourced_id(self, sourced_id: str) -> StoredUser | None:
        return _to_stored_user(
            self._session.scalars(select(UserModel).where(UserModel.sourced_id == sourced_id)).first()
        )

    def find_user_by_username(self, username: str) -> StoredUser | None:
        return _to_stored_user(
            self._session.scalars(select(UserModel).where(UserModel.username == username)).first()
        )

    def entity_counts(self) -> dict[str, int]:
        """Row totals per synchronized entity type."""
        models = {
            ENTITY_ORGANIZATION: OrganizationModel,
            ENTITY_USER: UserModel,
            ENTITY_COURSE: CourseModel,
            ENTITY_ENROLLMENT: EnrollmentModel,
        }
        return {
            name: self._session.scalar(select(func.count()).select_from(model)) or 0
            for name, model in models.items()
        }
