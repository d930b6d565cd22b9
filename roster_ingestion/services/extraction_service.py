"""
Extraction service: read the extracted directory into typed RosterTables.

Each row is coerced once, through its record type's ``from_row``.  Absent
tables become empty tuples; row order is preserved.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

from roster_config.schema import CsvOptions
from roster_kernel.exceptions import ExtractionDirectoryNotFoundError
from roster_kernel.logging_config import LogContext, get_logger

from roster_ingestion.adapters.base import SourceAdapter
from roster_ingestion.adapters.csv_adapter import CsvSourceAdapter
from roster_ingestion.domain.schemas import MANIFEST_FILE
from roster_ingestion.domain.types import (
    AcademicSessionRecord,
    ClassRecord,
    EnrollmentRecord,
    ManifestProperty,
    OrgRecord,
    RosterTables,
    UserRecord,
)

logger = get_logger("ingestion.extraction_service")

# RosterTables field -> (file name, record constructor)
TABLE_FILES: dict[str, tuple[str, Callable[..., Any]]] = {
    "manifest": (MANIFEST_FILE, ManifestProperty.from_row),
    "users": ("users.csv", UserRecord.from_row),
    "classes": ("classes.csv", ClassRecord.from_row),
    "orgs": ("orgs.csv", OrgRecord.from_row),
    "enrollments": ("enrollments.csv", EnrollmentRecord.from_row),
    "academic_sessions": ("academicSessions.csv", AcademicSessionRecord.from_row),
}


def extract_csvs_to_tables(
    directory: Path | str,
    csv_options: CsvOptions | None = None,
    adapter: SourceAdapter | None = None,
) -> RosterTables:
    """
    Load every known CSV in directory as a tuple of typed records.

    Raises:
        ExtractionDirectoryNotFoundError: directory does not exist.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise ExtractionDirectoryNotFoundError(str(directory))

    adapter = adapter or CsvSourceAdapter()
    options = (csv_options or CsvOptions()).to_adapter_options()
    present = {p.name for p in directory.iterdir() if p.is_file()}

    loaded: dict[str, tuple] = {}
    for field_name, (file_name, from_row) in TABLE_FILES.items():
        if file_name not in present:
            loaded[field_name] = ()
            continue
        with LogContext.bind(stage="extract", source_file=file_name):
            rows = adapter.read_numbered(directory / file_name, options)
            loaded[field_name] = tuple(from_row(row, n) for n, row in rows)

    tables = RosterTables(**loaded)
    logger.info("tables_extracted", extra={"directory": str(directory), "row_counts": tables.row_counts()})
    return tables
