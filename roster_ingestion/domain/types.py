"""
roster_ingestion.domain.types -- Pure frozen dataclasses for the roster pipeline.

Covers three groups:
    - Column/table definitions consumed by the validators.
    - Typed roster records produced by the CSV extractor.  Each record's
      ``from_row`` is the one place raw CSV strings are coerced.
    - Result types: manifest check, type validation, sync report.

ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping

# =============================================================================
# Entity type names used in reports and logs
# =============================================================================

ENTITY_ORGANIZATION = "organization"
ENTITY_USER = "user"
ENTITY_COURSE = "course"
ENTITY_ENROLLMENT = "enrollment"

SYNC_ENTITY_TYPES = (ENTITY_ORGANIZATION, ENTITY_USER, ENTITY_COURSE, ENTITY_ENROLLMENT)

STATUS_TO_BE_DELETED = "tobedeleted"


# =============================================================================
# Column and table definitions
# =============================================================================


class ColumnType(str, Enum):
    """Cell types a OneRoster CSV column may declare."""

    STRING = "string"
    IDENTIFIER = "identifier"  # Non-empty, no whitespace or commas
    IDENTIFIER_LIST = "identifier_list"  # Comma-separated identifiers
    ENUM = "enum"
    DATE = "date"  # YYYY-MM-DD
    DATETIME = "datetime"  # ISO 8601, trailing Z accepted
    BOOLEAN = "boolean"  # true / false
    YEAR = "year"  # Four digits


@dataclass(frozen=True)
class ColumnSpec:
    """Expected type of one CSV column."""

    name: str
    column_type: ColumnType
    required: bool = False
    allowed: frozenset[str] = frozenset()  # ENUM only


@dataclass(frozen=True)
class TableSchema:
    """Expected columns of one recognized CSV table."""

    file_name: str
    entity_type: str
    columns: tuple[ColumnSpec, ...]

    @property
    def header(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.columns)


# =============================================================================
# Raw cell coercion (used once, at the extraction boundary)
# =============================================================================


def _str(row: Mapping[str, Any], key: str, default: str = "") -> str:
    v = row.get(key)
    return str(v).strip() if v is not None else default


def _optional_str(row: Mapping[str, Any], key: str) -> str | None:
    v = row.get(key)
    if v is None or (isinstance(v, str) and not v.strip()):
        return None
    return str(v).strip()


def _split_list(row: Mapping[str, Any], key: str) -> tuple[str, ...]:
    raw = _str(row, key)
    if not raw:
        return ()
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _optional_date(row: Mapping[str, Any], key: str) -> date | None:
    raw = _optional_str(row, key)
    if raw is None:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None


def _optional_datetime(row: Mapping[str, Any], key: str) -> datetime | None:
    raw = _optional_str(row, key)
    if raw is None:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


def _bool(row: Mapping[str, Any], key: str, default: bool) -> bool:
    raw = _str(row, key).lower()
    if not raw:
        return default
    return raw in ("true", "1", "yes")


# =============================================================================
# Manifest
# =============================================================================


@dataclass(frozen=True)
class ManifestProperty:
    """One propertyName/value row of manifest.csv."""

    property_name: str
    value: str
    source_row: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any], source_row: int) -> ManifestProperty:
        return cls(
            property_name=_str(row, "propertyName"),
            value=_str(row, "value"),
            source_row=source_row,
        )


@dataclass(frozen=True)
class Manifest:
    """
    Parsed manifest.csv.

    declared_files maps a data file name (e.g. ``orgs.csv``) to its manifest
    mode (``bulk``, ``delta`` or ``absent``).  expected_headers maps each
    file that must be present to the header the OneRoster binding defines
    for it (None for files the registry does not know).
    """

    properties: tuple[ManifestProperty, ...]
    declared_files: Mapping[str, str]
    expected_headers: Mapping[str, tuple[str, ...] | None]

    def get(self, property_name: str) -> str | None:
        for prop in self.properties:
            if prop.property_name == property_name:
                return prop.value
        return None


# =============================================================================
# Roster records (one per CSV row)
# =============================================================================


@dataclass(frozen=True)
class OrgRecord:
    sourced_id: str
    name: str
    org_type: str
    identifier: str | None = None
    parent_sourced_id: str | None = None
    status: str | None = None
    date_last_modified: datetime | None = None
    source_row: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any], source_row: int) -> OrgRecord:
        return cls(
            sourced_id=_str(row, "sourcedId"),
            name=_str(row, "name"),
            org_type=_str(row, "type"),
            identifier=_optional_str(row, "identifier"),
            parent_sourced_id=_optional_str(row, "parentSourcedId"),
            status=_optional_str(row, "status"),
            date_last_modified=_optional_datetime(row, "dateLastModified"),
            source_row=source_row,
        )


@dataclass(frozen=True)
class UserRecord:
    sourced_id: str
    role: str
    username: str | None = None
    org_sourced_ids: tuple[str, ...] = ()
    given_name: str | None = None
    family_name: str | None = None
    middle_name: str | None = None
    identifier: str | None = None
    email: str | None = None
    enabled: bool = True
    status: str | None = None
    date_last_modified: datetime | None = None
    source_row: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any], source_row: int) -> UserRecord:
        return cls(
            sourced_id=_str(row, "sourcedId"),
            role=_str(row, "role"),
            username=_optional_str(row, "username"),
            org_sourced_ids=_split_list(row, "orgSourcedIds"),
            given_name=_optional_str(row, "givenName"),
            family_name=_optional_str(row, "familyName"),
            middle_name=_optional_str(row, "middleName"),
            identifier=_optional_str(row, "identifier"),
            email=_optional_str(row, "email"),
            enabled=_bool(row, "enabledUser", default=True),
            status=_optional_str(row, "status"),
            date_last_modified=_optional_datetime(row, "dateLastModified"),
            source_row=source_row,
        )


@dataclass(frozen=True)
class ClassRecord:
    sourced_id: str
    title: str
    school_sourced_id: str
    course_sourced_id: str | None = None
    class_code: str | None = None
    class_type: str | None = None
    term_sourced_ids: tuple[str, ...] = ()
    status: str | None = None
    date_last_modified: datetime | None = None
    source_row: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any], source_row: int) -> ClassRecord:
        return cls(
            sourced_id=_str(row, "sourcedId"),
            title=_str(row, "title"),
            school_sourced_id=_str(row, "schoolSourcedId"),
            course_sourced_id=_optional_str(row, "courseSourcedId"),
            class_code=_optional_str(row, "classCode"),
            class_type=_optional_str(row, "classType"),
            term_sourced_ids=_split_list(row, "termSourcedIds"),
            status=_optional_str(row, "status"),
            date_last_modified=_optional_datetime(row, "dateLastModified"),
            source_row=source_row,
        )


@dataclass(frozen=True)
class EnrollmentRecord:
    sourced_id: str
    class_sourced_id: str
    user_sourced_id: str
    role: str
    school_sourced_id: str | None = None
    primary: bool = False
    begin_date: date | None = None
    end_date: date | None = None
    status: str | None = None
    date_last_modified: datetime | None = None
    source_row: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any], source_row: int) -> EnrollmentRecord:
        return cls(
            sourced_id=_str(row, "sourcedId"),
            class_sourced_id=_str(row, "classSourcedId"),
            user_sourced_id=_str(row, "userSourcedId"),
            role=_str(row, "role"),
            school_sourced_id=_optional_str(row, "schoolSourcedId"),
            primary=_bool(row, "primary", default=False),
            begin_date=_optional_date(row, "beginDate"),
            end_date=_optional_date(row, "endDate"),
            status=_optional_str(row, "status"),
            date_last_modified=_optional_datetime(row, "dateLastModified"),
            source_row=source_row,
        )


@dataclass(frozen=True)
class AcademicSessionRecord:
    sourced_id: str
    title: str
    session_type: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    parent_sourced_id: str | None = None
    school_year: str | None = None
    status: str | None = None
    date_last_modified: datetime | None = None
    source_row: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any], source_row: int) -> AcademicSessionRecord:
        return cls(
            sourced_id=_str(row, "sourcedId"),
            title=_str(row, "title"),
            session_type=_optional_str(row, "type"),
            start_date=_optional_date(row, "startDate"),
            end_date=_optional_date(row, "endDate"),
            parent_sourced_id=_optional_str(row, "parentSourcedId"),
            school_year=_optional_str(row, "schoolYear"),
            status=_optional_str(row, "status"),
            date_last_modified=_optional_datetime(row, "dateLastModified"),
            source_row=source_row,
        )


@dataclass(frozen=True)
class RosterTables:
    """All tables extracted from one archive, rows in file order."""

    manifest: tuple[ManifestProperty, ...] = ()
    users: tuple[UserRecord, ...] = ()
    classes: tuple[ClassRecord, ...] = ()
    orgs: tuple[OrgRecord, ...] = ()
    enrollments: tuple[EnrollmentRecord, ...] = ()
    academic_sessions: tuple[AcademicSessionRecord, ...] = ()

    def row_counts(self) -> dict[str, int]:
        return {
            "manifest": len(self.manifest),
            "users": len(self.users),
            "classes": len(self.classes),
            "orgs": len(self.orgs),
            "enrollments": len(self.enrollments),
            "academicSessions": len(self.academic_sessions),
        }


# =============================================================================
# Validation results
# =============================================================================


@dataclass(frozen=True)
class ManifestCheckResult:
    """Files the manifest expects but are absent, and files with bad headers."""

    missing_files: frozenset[str] = frozenset()
    invalid_headers: frozenset[str] = frozenset()

    @property
    def is_valid(self) -> bool:
        return not self.missing_files and not self.invalid_headers


@dataclass(frozen=True)
class TypeViolation:
    """One cell that does not match its column's declared type."""

    file: str
    row: int  # 1-based data row, header excluded; 0 for file-level problems
    column: str
    reason: str
    value: str | None = None


@dataclass(frozen=True)
class TypeValidationResult:
    violations: tuple[TypeViolation, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.violations


# =============================================================================
# Sync report
# =============================================================================


@dataclass(frozen=True)
class SkippedRecord:
    """A row the reconciliation engine did not apply, and why."""

    entity_type: str
    sourced_id: str
    source_row: int
    code: str
    message: str


@dataclass
class EntityCounts:
    """Per-entity outcome counters, accumulated during one run."""

    created: int = 0
    updated: int = 0
    skipped: int = 0
    out_of_scope: int = 0

    @property
    def applied(self) -> int:
        return self.created + self.updated

    def to_dict(self) -> dict[str, int]:
        return {
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "out_of_scope": self.out_of_scope,
        }


@dataclass(frozen=True)
class SyncReport:
    """Outcome of one synchronise() run."""

    run_id: str
    scope_org: str
    counts: Mapping[str, EntityCounts]
    skipped: tuple[SkippedRecord, ...] = ()
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def created(self, entity_type: str) -> int:
        return self.counts[entity_type].created

    def updated(self, entity_type: str) -> int:
        return self.counts[entity_type].updated

    def skipped_for(self, entity_type: str) -> tuple[SkippedRecord, ...]:
        return tuple(s for s in self.skipped if s.entity_type == entity_type)

    @property
    def total_created(self) -> int:
        return sum(c.created for c in self.counts.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "scope_org": self.scope_org,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "counts": {k: v.to_dict() for k, v in self.counts.items()},
            "skipped": [
                {
                    "entity_type": s.entity_type,
                    "sourced_id": s.sourced_id,
                    "source_row": s.source_row,
                    "code": s.code,
                    "message": s.message,
                }
                for s in self.skipped
            ],
        }
