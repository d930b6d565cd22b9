"""
Scope settings: the organization selected for future syncs, and a users pre-check.

The selection is stored in sync_settings under SELECTED_SCOPE_KEY.  Callers
read it and hand it to RosterSyncClient explicitly.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from roster_kernel.domain.dtos import ValidationError
from roster_kernel.logging_config import get_logger
from roster_kernel.models import SyncSettingModel

from roster_ingestion.domain.types import RosterTables
from roster_ingestion.domain.validators import validate_users

logger = get_logger("ingestion.settings_service")

SELECTED_SCOPE_KEY = "datasync_schools"


class ScopeSettingsService:
    def __init__(self, session: Session):
        self._session = session

    def validate_users(self, tables: RosterTables) -> list[ValidationError]:
        """Pre-check the users table before a scope is saved; returns errors in file order."""
        errors = validate_users(tables.users)
        logger.info("users_validated", extra={"users": len(tables.users), "errors": len(errors)})
        return errors

    def save_selected_scope(self, org_sourced_id: str) -> None:
        if not org_sourced_id or not org_sourced_id.strip():
            raise ValueError("org_sourced_id must be a non-empty sourcedId")
        with self._session.begin_nested():
            setting = self._session.scalars(
                select(SyncSettingModel).where(SyncSettingModel.key == SELECTED_SCOPE_KEY)
            ).first()
            if setting is None:
                setting = SyncSettingModel(key=SELECTED_SCOPE_KEY, value=org_sourced_id.strip())
                self._session.add(setting)
            else:
                setting.value = org_sourced_id.strip()
            self._session.flush()
        logger.info("scope_saved", extra={"scope_org": org_sourced_id.strip()})

    def load_selected_scope(self) -> str | None:
        setting = self._session.scalars(
            select(SyncSettingModel).where(SyncSettingModel.key == SELECTED_SCOPE_KEY)
        ).first()
        return setting.value if setting is not None else None
