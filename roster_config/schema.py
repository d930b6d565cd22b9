"""
Sync configuration schema.

Defines the human-authored configuration for a roster sync deployment.
YAML files are parsed into these frozen types by the loader.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

DEFAULT_DATABASE_URL = "sqlite:///roster_sync.db"

# OneRoster enrollment role -> target-system role
DEFAULT_ROLE_MAP: Mapping[str, str] = MappingProxyType({
    "student": "student",
    "teacher": "editingteacher",
    "administrator": "manager",
    "proctor": "teacher",
})


@dataclass(frozen=True)
class CsvOptions:
    """How the extracted CSV files are read."""

    encoding: str = "utf-8"
    delimiter: str = ","

    def to_adapter_options(self) -> dict[str, str]:
        return {"encoding": self.encoding, "delimiter": self.delimiter}


@dataclass(frozen=True)
class SyncConfig:
    """Top-level configuration for the sync tooling."""

    database_url: str = DEFAULT_DATABASE_URL
    csv: CsvOptions = field(default_factory=CsvOptions)
    role_map: Mapping[str, str] = field(default_factory=lambda: DEFAULT_ROLE_MAP)
    default_org_scope: str | None = None
    log_level: str = "INFO"

    def map_role(self, oneroster_role: str) -> str:
        """Target role for a OneRoster enrollment role (unmapped roles pass through)."""
        return self.role_map.get(oneroster_role, oneroster_role)

    def to_dict(self) -> dict:
        return {
            "database_url": self.database_url,
            "csv": {"encoding": self.csv.encoding, "delimiter": self.csv.delimiter},
            "role_map": dict(self.role_map),
            "default_org_scope": self.default_org_scope,
            "log_level": self.log_level,
        }
