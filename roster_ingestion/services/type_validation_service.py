"""
Type validation service: check every cell of the known tables against its column type.

Only tables in TABLE_SCHEMAS are checked; absent files are skipped (the
manifest check reports them) and columns outside the schema are ignored.
Files are never modified.
"""

from __future__ import annotations

import csv
from pathlib import Path

from roster_config.schema import CsvOptions
from roster_kernel.exceptions import ExtractionDirectoryNotFoundError
from roster_kernel.logging_config import LogContext, get_logger

from roster_ingestion.adapters.base import SourceAdapter
from roster_ingestion.adapters.csv_adapter import CsvSourceAdapter
from roster_ingestion.domain.schemas import TABLE_SCHEMAS
from roster_ingestion.domain.types import TableSchema, TypeValidationResult, TypeViolation
from roster_ingestion.domain.validators import validate_cell

logger = get_logger("ingestion.type_validation_service")


def _check_cells(
    path: Path,
    schema: TableSchema,
    adapter: SourceAdapter,
    options: dict,
    violations: list[TypeViolation],
) -> None:
    header = adapter.read_header(path, options)
    if header is None:
        return

    present = set(header)
    checked = [spec for spec in schema.columns if spec.name in present]
    for spec in schema.columns:
        if spec.required and spec.name not in present:
            violations.append(
                TypeViolation(file=schema.file_name, row=0, column=spec.name, reason="required column is missing")
            )

    for row_number, row in adapter.read_numbered(path, options):
        for spec in checked:
            value = row.get(spec.name)
            reason = validate_cell(value, spec)
            if reason is not None:
                violations.append(
                    TypeViolation(
                        file=schema.file_name,
                        row=row_number,
                        column=spec.name,
                        reason=reason,
                        value=value,
                    )
                )


def _validate_table(
    path: Path,
    schema: TableSchema,
    adapter: SourceAdapter,
    options: dict,
) -> list[TypeViolation]:
    """Cell violations for one file; an unreadable file becomes a single row-0 violation."""
    violations: list[TypeViolation] = []
    try:
        _check_cells(path, schema, adapter, options, violations)
    except UnicodeDecodeError:
        encoding = options.get("encoding") or "utf-8"
        violations.append(
            TypeViolation(file=schema.file_name, row=0, column="", reason=f"file is not valid {encoding}")
        )
    except csv.Error as exc:
        violations.append(TypeViolation(file=schema.file_name, row=0, column="", reason=f"malformed CSV: {exc}"))
    return violations


def validate_csv_data_types(
    directory: Path | str,
    csv_options: CsvOptions | None = None,
    adapter: SourceAdapter | None = None,
) -> TypeValidationResult:
    """Validate the cells of every recognized table present in directory."""
    directory = Path(directory)
    if not directory.is_dir():
        raise ExtractionDirectoryNotFoundError(str(directory))

    adapter = adapter or CsvSourceAdapter()
    options = (csv_options or CsvOptions()).to_adapter_options()
    present = {p.name for p in directory.iterdir() if p.is_file()}

    violations: list[TypeViolation] = []
    for file_name, schema in TABLE_SCHEMAS.items():
        if file_name not in present:
            continue
        with LogContext.bind(stage="validate_types", source_file=file_name):
            table_violations = _validate_table(directory / file_name, schema, adapter, options)
            if table_violations:
                logger.warning("type_violations_found", extra={"count": len(table_violations)})
        violations.extend(table_violations)

    result = TypeValidationResult(violations=tuple(violations))
    logger.info("types_validated", extra={"violations": len(violations), "is_valid": result.is_valid})
    return result
