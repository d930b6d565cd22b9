"""
Typed exception hierarchy for roster synchronization.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from RosterSyncError:

    RosterSyncError (base)
    |
    +-- StructuralError                (fatal, raised before any write)
    |   +-- ManifestNotFoundError
    |   +-- InvalidManifestError
    |   +-- ArchiveUnreadableError
    |   +-- ExtractionDirectoryNotFoundError
    |
    +-- ConfigurationError             (fatal, raised before any write)
    |   +-- ScopeNotSetError
    |   +-- TablesNotLoadedError
    |   +-- ScopeOrganizationNotFoundError
    |
    +-- ReferentialError               (per row, caught and reported)
        +-- UnresolvedReferenceError
        +-- UnresolvedParentError

Validation problems (bad headers, type mismatches, missing files) are NOT
exceptions. They are returned as structured results so the caller decides
whether to proceed.

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Structural      | MANIFEST_NOT_FOUND          | manifest.csv missing from the directory
                | INVALID_MANIFEST            | manifest.csv header is not propertyName,value
                | ARCHIVE_UNREADABLE          | Archive missing, corrupt, or unsafe
                | EXTRACTION_DIR_NOT_FOUND    | Extracted directory does not exist
----------------|-----------------------------|-----------------------------------------
Configuration   | SCOPE_NOT_SET               | synchronise() without an org scope
                | TABLES_NOT_LOADED           | synchronise() without loaded tables
                | SCOPE_ORG_NOT_FOUND         | Scope org absent from the org table
----------------|-----------------------------|-----------------------------------------
Referential     | UNRESOLVED_REFERENCE        | Row points at an entity that did not resolve
                | UNRESOLVED_PARENT           | Org parent not present in the org table
===============================================================================
"""


class RosterSyncError(Exception):
    """
    Base exception for all roster synchronization errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "ROSTER_SYNC_ERROR"


# Structural errors


class StructuralError(RosterSyncError):
    """Base exception for fatal structural problems with the input."""

    code: str = "STRUCTURAL_ERROR"


class ManifestNotFoundError(StructuralError):
    """manifest.csv is missing."""

    code: str = "MANIFEST_NOT_FOUND"

    def __init__(self, manifest_path: str):
        self.manifest_path = manifest_path
        super().__init__(f"Manifest file not found: {manifest_path}")


class InvalidManifestError(StructuralError):
    """manifest.csv cannot be interpreted as a property/value table."""

    code: str = "INVALID_MANIFEST"

    def __init__(self, manifest_path: str, reason: str):
        self.manifest_path = manifest_path
        self.reason = reason
        super().__init__(f"Invalid manifest {manifest_path}: {reason}")


class ArchiveUnreadableError(StructuralError):
    """Archive is missing, corrupt, or contains unsafe member paths."""

    code: str = "ARCHIVE_UNREADABLE"

    def __init__(self, archive_path: str, reason: str):
        self.archive_path = archive_path
        self.reason = reason
        super().__init__(f"Cannot read archive {archive_path}: {reason}")


class ExtractionDirectoryNotFoundError(StructuralError):
    """The extracted directory handed to a pipeline stage does not exist."""

    code: str = "EXTRACTION_DIR_NOT_FOUND"

    def __init__(self, directory: str):
        self.directory = directory
        super().__init__(f"Extraction directory not found: {directory}")


# Configuration errors


class ConfigurationError(RosterSyncError):
    """Base exception for a sync run that was not set up correctly."""

    code: str = "CONFIGURATION_ERROR"


class ScopeNotSetError(ConfigurationError):
    """synchronise() called before an organization scope was selected."""

    code: str = "SCOPE_NOT_SET"

    def __init__(self) -> None:
        super().__init__("Organization scope must be set before synchronise()")


class TablesNotLoadedError(ConfigurationError):
    """synchronise() called before any tables were loaded."""

    code: str = "TABLES_NOT_LOADED"

    def __init__(self) -> None:
        super().__init__("Roster tables must be loaded before synchronise()")


class ScopeOrganizationNotFoundError(ConfigurationError):
    """The selected scope org does not appear in the loaded org table."""

    code: str = "SCOPE_ORG_NOT_FOUND"

    def __init__(self, org_sourced_id: str):
        self.org_sourced_id = org_sourced_id
        super().__init__(
            f"Scope organization {org_sourced_id!r} not found in orgs table"
        )


# Referential errors


class ReferentialError(RosterSyncError):
    """Base exception for a row whose references cannot be resolved."""

    code: str = "REFERENTIAL_ERROR"


class UnresolvedReferenceError(ReferentialError):
    """A row references an entity that did not resolve in this run."""

    code: str = "UNRESOLVED_REFERENCE"

    def __init__(
        self,
        entity_type: str,
        sourced_id: str,
        reference_type: str,
        reference_id: str,
        reason_code: str,
    ):
        self.entity_type = entity_type
        self.sourced_id = sourced_id
        self.reference_type = reference_type
        self.reference_id = reference_id
        self.reason_code = reason_code
        super().__init__(
            f"{entity_type} {sourced_id!r}: {reference_type} {reference_id!r} did not resolve"
        )


class UnresolvedParentError(ReferentialError):
    """An org's parent is missing from the org table or forms a cycle."""

    code: str = "UNRESOLVED_PARENT"

    def __init__(self, sourced_id: str, parent_sourced_id: str, reason_code: str = "UNRESOLVED_PARENT"):
        self.sourced_id = sourced_id
        self.parent_sourced_id = parent_sourced_id
        self.reason_code = reason_code
        super().__init__(
            f"Organization {sourced_id!r}: parent {parent_sourced_id!r} did not resolve"
        )
