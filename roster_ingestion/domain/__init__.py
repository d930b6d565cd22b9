"""Pure domain types, OneRoster table schemas, and validators. ZERO I/O."""

from roster_ingestion.domain.types import (
    AcademicSessionRecord,
    ClassRecord,
    EnrollmentRecord,
    EntityCounts,
    Manifest,
    ManifestCheckResult,
    ManifestProperty,
    OrgRecord,
    RosterTables,
    SkippedRecord,
    SyncReport,
    TypeValidationResult,
    TypeViolation,
    UserRecord,
)

__all__ = [
    "AcademicSessionRecord",
    "ClassRecord",
    "EnrollmentRecord",
    "EntityCounts",
    "Manifest",
    "ManifestCheckResult",
    "ManifestProperty",
    "OrgRecord",
    "RosterTables",
    "SkippedRecord",
    "SyncReport",
    "TypeValidationResult",
    "TypeViolation",
    "UserRecord",
]
