"""Ingestion services: manifest check, type validation, extraction, reconciliation, sync client."""

from roster_ingestion.services.extraction_service import extract_csvs_to_tables
from roster_ingestion.services.manifest_service import check_manifest_and_files, parse_manifest
from roster_ingestion.services.reconciliation_service import ReconciliationService, derive_username
from roster_ingestion.services.settings_service import ScopeSettingsService
from roster_ingestion.services.sync_client import RosterSyncClient
from roster_ingestion.services.type_validation_service import validate_csv_data_types

__all__ = [
    "check_manifest_and_files",
    "derive_username",
    "extract_csvs_to_tables",
    "parse_manifest",
    "validate_csv_data_types",
    "ReconciliationService",
    "RosterSyncClient",
    "ScopeSettingsService",
]
