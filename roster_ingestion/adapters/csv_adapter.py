"""
CSV adapter for OneRoster exports.

Exports from Windows SIS tools often start with a UTF-8 BOM and pad header
cells with spaces; both are removed before anything compares column names.
Rows are streamed, never loaded as a whole file.

Data rows are numbered from 1 after the header.  Blank lines are not yielded
but still take up a number, so reported rows match the line a user sees in a
spreadsheet.  Bytes invalid in the configured encoding surface as
UnicodeDecodeError; malformed quoting as csv.Error.
"""

from __future__ import annotations

import csv
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, TextIO

DEFAULT_ENCODING = "utf-8"
DEFAULT_DELIMITER = ","


@contextmanager
def _open_csv(source_path: Path, options: dict[str, Any]) -> Iterator[tuple[TextIO, str]]:
    encoding = options.get("encoding") or DEFAULT_ENCODING
    if encoding.lower().replace("_", "-") in ("utf-8", "utf8"):
        encoding = "utf-8-sig"
    with source_path.open("r", encoding=encoding, newline="") as f:
        yield f, options.get("delimiter") or DEFAULT_DELIMITER


def _clean_header(cells: list[str]) -> tuple[str, ...]:
    return tuple(cell.strip() for cell in cells)


class CsvSourceAdapter:
    """Reads a CSV file as header-keyed dicts."""

    def read_numbered(self, source_path: Path, options: dict[str, Any]) -> Iterator[tuple[int, dict[str, Any]]]:
        with _open_csv(source_path, options) as (f, delimiter):
            rows = csv.reader(f, delimiter=delimiter)
            header = next(rows, None)
            if header is None:
                return
            columns = _clean_header(header)
            for row_number, cells in enumerate(rows, start=1):
                if not cells:
                    continue
                # Short rows pad with None, like csv.DictReader
                yield row_number, {
                    column: cells[i] if i < len(cells) else None for i, column in enumerate(columns)
                }

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        for _, row in self.read_numbered(source_path, options):
            yield row

    def read_header(self, source_path: Path, options: dict[str, Any]) -> tuple[str, ...] | None:
        with _open_csv(source_path, options) as (f, delimiter):
            header = next(csv.reader(f, delimiter=delimiter), None)
        return None if header is None else _clean_header(header)
