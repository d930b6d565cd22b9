#!/usr/bin/env python3
"""
Run a OneRoster CSV sync: verify the export, validate cell types, extract, and reconcile one organization.

The organization scope comes from --org, else the scope saved by an earlier
--save-scope run, else default_org_scope in the config file.

Usage:
    python3 scripts/run_sync.py (--archive <zip> | --dir <path>) [options]

Examples:
    # Validate an export without touching the database
    python3 scripts/run_sync.py --archive export.zip --validate-only

    # Sync one school and remember it as the default scope
    python3 scripts/run_sync.py --archive export.zip --org org-sch-222-456 --save-scope

    # Sync an already extracted directory against PostgreSQL
    python3 scripts/run_sync.py --dir ./export --db-url postgresql://roster@localhost/roster
"""

from __future__ import annotations

import argparse
import json
import sys
import tempfile
from pathlib import Path
from typing import Any, Sequence

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run roster sync: manifest check -> type validation -> extract -> reconcile.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--archive",
        type=Path,
        help="Path to a OneRoster CSV zip export.",
    )
    source.add_argument(
        "--dir",
        type=Path,
        help="Path to an already extracted OneRoster CSV directory.",
    )
    parser.add_argument(
        "--org",
        default=None,
        help="sourcedId of the organization to synchronise (default: saved scope, then config).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a sync config YAML file (default: ROSTER_SYNC_CONFIG env or built-in defaults).",
    )
    parser.add_argument(
        "--db-url",
        default=None,
        help="Database URL (default: DATABASE_URL env or config database_url).",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Check manifest and cell types, print the result, and exit. No DB writes.",
    )
    parser.add_argument(
        "--save-scope",
        action="store_true",
        help="Persist --org as the selected scope after the users pre-check passes.",
    )
    return parser.parse_args(argv)


def _print_json(payload: dict[str, Any], stream: Any = None) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True, default=str), file=stream or sys.stdout)


def _validate(directory: Path, csv_options: Any) -> dict[str, Any]:
    from roster_ingestion.domain.schemas import MANIFEST_FILE
    from roster_ingestion.services import check_manifest_and_files, validate_csv_data_types

    manifest_result = check_manifest_and_files(directory / MANIFEST_FILE, directory, csv_options)
    type_result = validate_csv_data_types(directory, csv_options)
    return {
        "valid": manifest_result.is_valid and type_result.is_valid,
        "missing_files": sorted(manifest_result.missing_files),
        "invalid_headers": sorted(manifest_result.invalid_headers),
        "type_violations": [
            {"file": v.file, "row": v.row, "column": v.column, "reason": v.reason, "value": v.value}
            for v in type_result.violations
        ],
    }


def _run(args: argparse.Namespace, config: Any, directory: Path) -> int:
    from roster_ingestion.services import RosterSyncClient, ScopeSettingsService, extract_csvs_to_tables
    from roster_ingestion.store import SqlTargetStore
    from roster_kernel.db.engine import create_tables, init_engine_from_url, session_scope

    validation = _validate(directory, config.csv)
    if not validation["valid"] or args.validate_only:
        _print_json({"validation": validation})
        return 0 if validation["valid"] else 1

    tables = extract_csvs_to_tables(directory, config.csv)

    init_engine_from_url(args.db_url or config.database_url)
    create_tables()

    with session_scope() as session:
        settings = ScopeSettingsService(session)
        scope = args.org or settings.load_selected_scope() or config.default_org_scope

        if args.save_scope:
            if not args.org:
                print("ERROR: --save-scope requires --org", file=sys.stderr)
                return 1
            user_errors = settings.validate_users(tables)
            if user_errors:
                _print_json({"user_errors": [e.to_dict() for e in user_errors]})
                return 1
            settings.save_selected_scope(args.org)

        client = RosterSyncClient(SqlTargetStore(session), org_scope=scope, config=config)
        client.load_tables(tables)
        report = client.synchronise()

    _print_json({"report": report.to_dict()})
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    # Lazy imports so we fail fast on args first
    import yaml

    from roster_config import compute_checksum, get_sync_config
    from roster_ingestion.adapters import extract_archive
    from roster_kernel.exceptions import RosterSyncError
    from roster_kernel.logging_config import configure_logging, get_logger

    try:
        config = get_sync_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"ERROR: Failed to load config: {e}", file=sys.stderr)
        return 1

    configure_logging(level=config.log_level)
    get_logger("scripts.run_sync").info("config_loaded", extra={"checksum": compute_checksum(config)})

    try:
        if args.archive is not None:
            with tempfile.TemporaryDirectory(prefix="roster_sync_") as tmp:
                directory = extract_archive(args.archive.resolve(), Path(tmp))
                return _run(args, config, directory)
        return _run(args, config, args.dir.resolve())
    except RosterSyncError as e:
        _print_json({"error": e.code, "message": str(e)}, stream=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
