"""
Configuration Loader (``roster_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen
``roster_config.schema`` dataclasses.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or wrongly typed sections  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from roster_config.schema import DEFAULT_ROLE_MAP, CsvOptions, SyncConfig

_TOP_LEVEL_KEYS = frozenset({"database_url", "csv", "role_map", "default_org_scope", "log_level"})
_CSV_KEYS = frozenset({"encoding", "delimiter"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level, got {type(data).__name__}")
    return data


def parse_csv_options(data: dict[str, Any]) -> CsvOptions:
    """Parse the ``csv`` section."""
    unknown = set(data) - _CSV_KEYS
    if unknown:
        raise ValueError(f"Unknown csv option(s): {sorted(unknown)}")
    delimiter = str(data.get("delimiter", ","))
    if len(delimiter) != 1:
        raise ValueError(f"csv.delimiter must be a single character, got {delimiter!r}")
    return CsvOptions(
        encoding=str(data.get("encoding", "utf-8")),
        delimiter=delimiter,
    )


def parse_sync_config(data: dict[str, Any]) -> SyncConfig:
    """
    Parse a ``SyncConfig`` from a dict.

    ``role_map`` entries are merged over the default role map so a config
    only needs to list the roles it changes.
    """
    unknown = set(data) - _TOP_LEVEL_KEYS
    if unknown:
        raise ValueError(f"Unknown configuration key(s): {sorted(unknown)}")

    csv_section = data.get("csv") or {}
    if not isinstance(csv_section, dict):
        raise ValueError("csv must be a mapping")

    role_overrides = data.get("role_map") or {}
    if not isinstance(role_overrides, dict):
        raise ValueError("role_map must be a mapping")
    role_map = dict(DEFAULT_ROLE_MAP)
    role_map.update({str(k): str(v) for k, v in role_overrides.items()})

    scope = data.get("default_org_scope")
    return SyncConfig(
        database_url=str(data.get("database_url") or SyncConfig.database_url),
        csv=parse_csv_options(csv_section),
        role_map=MappingProxyType(role_map),
        default_org_scope=str(scope) if scope else None,
        log_level=str(data.get("log_level", "INFO")).upper(),
    )


def load_sync_config(path: Path | None = None) -> SyncConfig:
    """Load configuration from ``path``; defaults when ``path`` is None."""
    if path is None:
        return SyncConfig()
    return parse_sync_config(load_yaml_file(Path(path)))


def compute_checksum(config: SyncConfig) -> str:
    """
    Compute SHA-256 checksum of the canonical JSON serialization.

    Identical configurations always produce identical checksums.
    """
    canonical = json.dumps(config.to_dict(), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
