"""
Sync client: holds one run's tables and organization scope, then synchronises.

The scope is always passed in explicitly (constructor or set_org_scope);
the client never reads a persisted selection on its own.
"""

from __future__ import annotations

from typing import Sequence

from roster_config.schema import SyncConfig
from roster_kernel.domain.clock import Clock
from roster_kernel.exceptions import (
    ScopeNotSetError,
    ScopeOrganizationNotFoundError,
    TablesNotLoadedError,
)
from roster_kernel.logging_config import get_logger

from roster_ingestion.domain.types import (
    AcademicSessionRecord,
    ClassRecord,
    EnrollmentRecord,
    ManifestProperty,
    OrgRecord,
    RosterTables,
    SyncReport,
    UserRecord,
)
from roster_ingestion.services.reconciliation_service import ReconciliationService
from roster_ingestion.store.base import TargetStore

logger = get_logger("ingestion.sync_client")


class RosterSyncClient:
    """Front door for one synchronization: scope + tables -> SyncReport."""

    def __init__(
        self,
        store: TargetStore,
        org_scope: str | None = None,
        config: SyncConfig | None = None,
        clock: Clock | None = None,
    ):
        self._reconciler = ReconciliationService(store, config=config, clock=clock)
        self._org_scope = org_scope
        self._tables: RosterTables | None = None

    @property
    def org_scope(self) -> str | None:
        return self._org_scope

    @property
    def tables(self) -> RosterTables | None:
        return self._tables

    def set_org_scope(self, org_sourced_id: str) -> None:
        self._org_scope = org_sourced_id

    def set_data(
        self,
        manifest: Sequence[ManifestProperty],
        users: Sequence[UserRecord],
        classes: Sequence[ClassRecord],
        orgs: Sequence[OrgRecord],
        enrollments: Sequence[EnrollmentRecord],
        academic_sessions: Sequence[AcademicSessionRecord],
    ) -> None:
        """Load the six tables, replacing anything loaded before."""
        self.load_tables(
            RosterTables(
                manifest=tuple(manifest),
                users=tuple(users),
                classes=tuple(classes),
                orgs=tuple(orgs),
                enrollments=tuple(enrollments),
                academic_sessions=tuple(academic_sessions),
            )
        )

    def load_tables(self, tables: RosterTables) -> None:
        self._tables = tables
        logger.debug("tables_loaded", extra={"row_counts": tables.row_counts()})

    def synchronise(self) -> SyncReport:
        """
        Reconcile the loaded tables under the selected scope.

        Raises:
            ScopeNotSetError: no org scope selected.
            TablesNotLoadedError: no tables loaded.
            ScopeOrganizationNotFoundError: scope org absent from the org table.
        """
        if not self._org_scope:
            raise ScopeNotSetError()
        if self._tables is None:
            raise TablesNotLoadedError()
        if not any(org.sourced_id == self._org_scope for org in self._tables.orgs):
            raise ScopeOrganizationNotFoundError(self._org_scope)

        return self._reconciler.synchronise(self._org_scope, self._tables)
