"""
roster_ingestion.domain.schemas -- OneRoster 1.1 CSV table definitions.

Two registries:
    ONEROSTER_HEADERS: every bulk file the OneRoster 1.1 CSV binding defines,
        with its exact header row.  Used by the manifest check.
    TABLE_SCHEMAS: the tables this pipeline synchronizes, with a column type
        for every header column.  Used by the type validator.

ZERO I/O.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from roster_ingestion.domain.types import ColumnSpec, ColumnType, TableSchema

MANIFEST_FILE = "manifest.csv"
MANIFEST_HEADER: tuple[str, ...] = ("propertyName", "value")

STATUS_VALUES = frozenset({"active", "tobedeleted", "inactive"})
ORG_TYPES = frozenset({"department", "school", "district", "local", "state", "national"})
USER_ROLES = frozenset({
    "administrator", "aide", "guardian", "parent", "proctor", "relative", "student", "teacher",
})
ENROLLMENT_ROLES = frozenset({"administrator", "proctor", "student", "teacher"})
CLASS_TYPES = frozenset({"homeroom", "scheduled"})
SESSION_TYPES = frozenset({"gradingPeriod", "semester", "schoolYear", "term"})

_COMMON = ("sourcedId", "status", "dateLastModified")

ONEROSTER_HEADERS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "academicSessions.csv": _COMMON + (
        "title", "type", "startDate", "endDate", "parentSourcedId", "schoolYear",
    ),
    "categories.csv": _COMMON + ("title",),
    "classes.csv": _COMMON + (
        "title", "grades", "courseSourcedId", "classCode", "classType", "location",
        "schoolSourcedId", "termSourcedIds", "subjects", "subjectCodes", "periods",
    ),
    "classResources.csv": _COMMON + ("title", "classSourcedId", "resourceSourcedId"),
    "courses.csv": _COMMON + (
        "schoolYearSourcedId", "title", "courseCode", "grades", "orgSourcedId",
        "subjects", "subjectCodes",
    ),
    "courseResources.csv": _COMMON + ("title", "courseSourcedId", "resourceSourcedId"),
    "demographics.csv": _COMMON + (
        "birthDate", "sex", "americanIndianOrAlaskaNative", "asian",
        "blackOrAfricanAmerican", "nativeHawaiianOrOtherPacificIslander", "white",
        "demographicRaceTwoOrMoreRaces", "hispanicOrLatinoEthnicity",
        "countryOfBirthCode", "stateOfBirthAbbreviation", "cityOfBirth",
        "publicSchoolResidenceStatus",
    ),
    "enrollments.csv": _COMMON + (
        "classSourcedId", "schoolSourcedId", "userSourcedId", "role", "primary",
        "beginDate", "endDate",
    ),
    "lineItems.csv": _COMMON + (
        "title", "description", "assignDate", "dueDate", "classSourcedId",
        "categorySourcedId", "gradingPeriodSourcedId", "resultValueMin", "resultValueMax",
    ),
    "orgs.csv": _COMMON + ("name", "type", "identifier", "parentSourcedId"),
    "resources.csv": _COMMON + (
        "vendorResourceId", "title", "roles", "importance", "vendorId", "applicationId",
    ),
    "results.csv": _COMMON + (
        "lineItemSourcedId", "studentSourcedId", "scoreStatus", "score", "scoreDate", "comment",
    ),
    "userResources.csv": _COMMON + ("title", "userSourcedId", "resourceSourcedId"),
    "users.csv": _COMMON + (
        "enabledUser", "orgSourcedIds", "role", "username", "userIds", "givenName",
        "familyName", "middleName", "identifier", "email", "sms", "phone",
        "agentSourcedIds", "grades", "password",
    ),
})


def _s(name: str, required: bool = False) -> ColumnSpec:
    return ColumnSpec(name, ColumnType.STRING, required)


def _id(name: str, required: bool = True) -> ColumnSpec:
    return ColumnSpec(name, ColumnType.IDENTIFIER, required)


_COMMON_SPECS = (
    _id("sourcedId"),
    ColumnSpec("status", ColumnType.ENUM, allowed=STATUS_VALUES),
    ColumnSpec("dateLastModified", ColumnType.DATETIME),
)

TABLE_SCHEMAS: Mapping[str, TableSchema] = MappingProxyType({
    "orgs.csv": TableSchema("orgs.csv", "orgs", _COMMON_SPECS + (
        _s("name", required=True),
        ColumnSpec("type", ColumnType.ENUM, required=True, allowed=ORG_TYPES),
        _s("identifier"),
        _id("parentSourcedId", required=False),
    )),
    "users.csv": TableSchema("users.csv", "users", _COMMON_SPECS + (
        ColumnSpec("enabledUser", ColumnType.BOOLEAN, required=True),
        ColumnSpec("orgSourcedIds", ColumnType.IDENTIFIER_LIST, required=True),
        ColumnSpec("role", ColumnType.ENUM, required=True, allowed=USER_ROLES),
        _s("username"),
        _s("userIds"),
        _s("givenName", required=True),
        _s("familyName", required=True),
        _s("middleName"),
        _s("identifier"),
        _s("email"),
        _s("sms"),
        _s("phone"),
        ColumnSpec("agentSourcedIds", ColumnType.IDENTIFIER_LIST),
        _s("grades"),
        _s("password"),
    )),
    "classes.csv": TableSchema("classes.csv", "classes", _COMMON_SPECS + (
        _s("title", required=True),
        _s("grades"),
        _id("courseSourcedId"),
        _s("classCode"),
        ColumnSpec("classType", ColumnType.ENUM, required=True, allowed=CLASS_TYPES),
        _s("location"),
        _id("schoolSourcedId"),
        ColumnSpec("termSourcedIds", ColumnType.IDENTIFIER_LIST, required=True),
        _s("subjects"),
        _s("subjectCodes"),
        _s("periods"),
    )),
    "enrollments.csv": TableSchema("enrollments.csv", "enrollments", _COMMON_SPECS + (
        _id("classSourcedId"),
        _id("schoolSourcedId"),
        _id("userSourcedId"),
        ColumnSpec("role", ColumnType.ENUM, required=True, allowed=ENROLLMENT_ROLES),
        ColumnSpec("primary", ColumnType.BOOLEAN),
        ColumnSpec("beginDate", ColumnType.DATE),
        ColumnSpec("endDate", ColumnType.DATE),
    )),
    "academicSessions.csv": TableSchema("academicSessions.csv", "academicSessions", _COMMON_SPECS + (
        _s("title", required=True),
        ColumnSpec("type", ColumnType.ENUM, required=True, allowed=SESSION_TYPES),
        ColumnSpec("startDate", ColumnType.DATE, required=True),
        ColumnSpec("endDate", ColumnType.DATE, required=True),
        _id("parentSourcedId", required=False),
        ColumnSpec("schoolYear", ColumnType.YEAR, required=True),
    )),
})


def expected_header(file_name: str) -> tuple[str, ...] | None:
    """Header row the OneRoster binding defines for ``file_name`` (None if unknown)."""
    return ONEROSTER_HEADERS.get(file_name)
