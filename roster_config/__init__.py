"""
roster_config -- configuration for the roster sync tooling.

Responsibility:
    ``get_sync_config()`` is the entry point used by the CLI.  It reads the
    YAML file named by ``ROSTER_SYNC_CONFIG`` (or the explicit path given)
    and lets ``DATABASE_URL`` override the configured database.

Failure modes:
    - ``FileNotFoundError`` -- the named configuration file does not exist.
    - ``ValueError`` -- unknown keys or malformed sections.
"""

from __future__ import annotations

import os
from dataclasses import replace
from pathlib import Path

from roster_config.loader import compute_checksum, load_sync_config, parse_sync_config
from roster_config.schema import CsvOptions, SyncConfig

CONFIG_ENV_VAR = "ROSTER_SYNC_CONFIG"
DATABASE_URL_ENV_VAR = "DATABASE_URL"


def get_sync_config(path: Path | None = None) -> SyncConfig:
    """Resolve the active configuration (explicit path, then environment)."""
    if path is None and os.environ.get(CONFIG_ENV_VAR):
        path = Path(os.environ[CONFIG_ENV_VAR])
    config = load_sync_config(path)
    db_url = os.environ.get(DATABASE_URL_ENV_VAR)
    if db_url:
        config = replace(config, database_url=db_url)
    return config


__all__ = [
    "CsvOptions",
    "SyncConfig",
    "compute_checksum",
    "get_sync_config",
    "load_sync_config",
    "parse_sync_config",
]
