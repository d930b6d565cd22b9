"""
Source adapter protocol.

An adapter turns one export file into header-keyed row dicts.  Services take
an optional adapter so tests can feed rows without touching the filesystem.
File I/O only; no database or kernel imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator, Protocol, runtime_checkable


@runtime_checkable
class SourceAdapter(Protocol):
    def read_numbered(self, source_path: Path, options: dict[str, Any]) -> Iterator[tuple[int, dict[str, Any]]]:
        """Yield ``(data_row, row)`` pairs; data_row is 1-based and counts skipped blank lines."""
        ...

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        """Yield one dict per data row, keyed by the cleaned header."""
        ...

    def read_header(self, source_path: Path, options: dict[str, Any]) -> tuple[str, ...] | None:
        """Cleaned header row, or None if the file is empty."""
        ...
