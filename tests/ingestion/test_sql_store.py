"""Tests for SqlTargetStore upserts and lookups."""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from roster_ingestion.store import UpsertResult
from roster_kernel.models import EnrollmentModel, OrganizationModel, UserModel


def _org(store, sourced_id="org-1", **attrs) -> UpsertResult:
    return store.upsert_organization(sourced_id, {"name": "North", "org_type": "school", **attrs})


def _user(store, sourced_id="usr-1", username="ada", **attrs) -> UpsertResult:
    return store.upsert_user(sourced_id, {"username": username, "role": "teacher", **attrs})


class TestOrganizationUpsert:
    def test_create_then_update(self, store, session):
        first = _org(store)
        second = _org(store, name="North Campus")

        assert first.created is True
        assert second.created is False
        assert second.entity_id == first.entity_id
        org = session.get(OrganizationModel, first.entity_id)
        assert org.name == "North Campus"

    def test_parent_pointer(self, store, session):
        parent = _org(store, "dist-1", org_type="district")
        child = _org(store, "org-1", parent_id=parent.entity_id)
        assert session.get(OrganizationModel, child.entity_id).parent_id == parent.entity_id

    def test_unknown_attribute_rejected(self, store):
        with pytest.raises(ValueError, match="Unknown attribute"):
            _org(store, colour="green")


class TestUserUpsert:
    def test_adopts_account_without_sourced_id(self, store, session):
        legacy = UserModel(username="ada", role="teacher")
        session.add(legacy)
        session.flush()

        result = _user(store, "usr-1", "ada")

        assert result.created is False
        assert result.entity_id == legacy.id
        assert session.get(UserModel, legacy.id).sourced_id == "usr-1"

    def test_find_helpers(self, store):
        created = _user(store, "usr-1", "ada")
        by_sid = store.find_user_by_sourced_id("usr-1")
        by_name = store.find_user_by_username("ada")

        assert by_sid == by_name
        assert by_sid.entity_id == created.entity_id
        assert store.find_user_by_username("nobody") is None
        assert store.find_user_by_sourced_id("usr-404") is None


class TestCourseAndEnrollmentUpsert:
    def _course(self, store, sourced_id="cls-1"):
        org = _org(store)
        return store.upsert_course(
            sourced_id, {"fullname": "Math 7", "shortname": "MATH7", "organization_id": org.entity_id}
        )

    def test_enrollment_pair_updated_not_duplicated(self, store, session):
        course = self._course(store)
        user = _user(store)

        first = store.upsert_enrollment(user.entity_id, course.entity_id, {"role": "editingteacher"})
        second = store.upsert_enrollment(user.entity_id, course.entity_id, {"role": "teacher"})

        assert (first.created, second.created) == (True, False)
        rows = session.scalars(select(EnrollmentModel)).all()
        assert len(rows) == 1
        assert rows[0].role == "teacher"

    def test_entity_counts(self, store):
        course = self._course(store)
        user = _user(store)
        store.upsert_enrollment(user.entity_id, course.entity_id, {"role": "student"})
        assert store.entity_counts() == {"organization": 1, "user": 1, "course": 1, "enrollment": 1}

    def test_failed_upsert_rolls_back_only_itself(self, store, session):
        _user(store, "usr-1", "ada")
        with pytest.raises(IntegrityError):
            _user(store, "usr-2", "ada")
        assert store.find_user_by_sourced_id("usr-1") is not None
        assert store.find_user_by_sourced_id("usr-2") is None
