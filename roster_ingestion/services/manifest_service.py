"""
Manifest service: parse manifest.csv and verify the declared files.

A manifest row ``file.<table>`` with value ``bulk`` or ``delta`` declares
``<table>.csv`` as required; ``absent`` declares it as not expected.
Problems with the data files, including files that cannot be decoded, are
returned as a ManifestCheckResult; only a missing or unreadable manifest
raises.
"""

from __future__ import annotations

import csv
from pathlib import Path

from roster_config.schema import CsvOptions
from roster_kernel.exceptions import (
    ExtractionDirectoryNotFoundError,
    InvalidManifestError,
    ManifestNotFoundError,
)
from roster_kernel.logging_config import get_logger

from roster_ingestion.adapters.base import SourceAdapter
from roster_ingestion.adapters.csv_adapter import CsvSourceAdapter
from roster_ingestion.domain.schemas import MANIFEST_HEADER, expected_header
from roster_ingestion.domain.types import Manifest, ManifestCheckResult, ManifestProperty

logger = get_logger("ingestion.manifest_service")

FILE_PROPERTY_PREFIX = "file."
REQUIRED_MODES = frozenset({"bulk", "delta"})


def parse_manifest(
    manifest_path: Path | str,
    csv_options: CsvOptions | None = None,
    adapter: SourceAdapter | None = None,
) -> Manifest:
    """
    Read manifest.csv into a Manifest.

    Raises:
        ManifestNotFoundError: manifest_path does not exist.
        InvalidManifestError: header is not exactly ``propertyName,value``, or the
            file cannot be decoded.
    """
    path = Path(manifest_path)
    if not path.is_file():
        raise ManifestNotFoundError(str(path))

    options = (csv_options or CsvOptions()).to_adapter_options()
    adapter = adapter or CsvSourceAdapter()

    try:
        header = adapter.read_header(path, options)
        rows = list(adapter.read_numbered(path, options))
    except (UnicodeDecodeError, csv.Error) as exc:
        raise InvalidManifestError(str(path), f"unreadable: {exc}") from exc
    if header != MANIFEST_HEADER:
        raise InvalidManifestError(
            str(path), f"expected header {','.join(MANIFEST_HEADER)}, got {header!r}"
        )

    properties = tuple(ManifestProperty.from_row(row, source_row) for source_row, row in rows)

    declared: dict[str, str] = {}
    for prop in properties:
        if not prop.property_name.startswith(FILE_PROPERTY_PREFIX):
            continue
        table = prop.property_name[len(FILE_PROPERTY_PREFIX):]
        if table:
            declared[f"{table}.csv"] = prop.value.strip().lower()

    expected = {
        file_name: expected_header(file_name)
        for file_name, mode in declared.items()
        if mode in REQUIRED_MODES
    }
    return Manifest(properties=properties, declared_files=declared, expected_headers=expected)


def check_manifest_and_files(
    manifest_path: Path | str,
    directory: Path | str,
    csv_options: CsvOptions | None = None,
    adapter: SourceAdapter | None = None,
) -> ManifestCheckResult:
    """
    Verify every file the manifest requires is present with the expected header.

    File names are compared case-sensitively against the directory listing.
    Header comparison is exact: same names, same order.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise ExtractionDirectoryNotFoundError(str(directory))

    adapter = adapter or CsvSourceAdapter()
    options = (csv_options or CsvOptions()).to_adapter_options()
    manifest = parse_manifest(manifest_path, csv_options, adapter)

    present = {p.name for p in directory.iterdir() if p.is_file()}
    missing: set[str] = set()
    invalid: set[str] = set()

    for file_name, header in manifest.expected_headers.items():
        if file_name not in present:
            missing.add(file_name)
            continue
        try:
            actual = adapter.read_header(directory / file_name, options)
        except (UnicodeDecodeError, csv.Error) as exc:
            logger.warning("header_unreadable", extra={"file": file_name, "error": str(exc)})
            invalid.add(file_name)
            continue
        if actual is None:
            invalid.add(file_name)
        elif header is not None and actual != header:
            logger.debug(
                "header_mismatch",
                extra={"file": file_name, "expected": list(header), "actual": list(actual)},
            )
            invalid.add(file_name)

    result = ManifestCheckResult(missing_files=frozenset(missing), invalid_headers=frozenset(invalid))
    logger.info(
        "manifest_checked",
        extra={
            "declared_files": len(manifest.declared_files),
            "missing_files": sorted(missing),
            "invalid_headers": sorted(invalid),
        },
    )
    return result
