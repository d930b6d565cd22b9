"""Source adapters for roster ingestion (file I/O only, no DB)."""

from roster_ingestion.adapters.archive import extract_archive
from roster_ingestion.adapters.base import SourceAdapter
from roster_ingestion.adapters.csv_adapter import CsvSourceAdapter

__all__ = [
    "CsvSourceAdapter",
    "SourceAdapter",
    "extract_archive",
]
