"""Target store: protocol and SQLAlchemy implementation."""

from roster_ingestion.store.base import StoredUser, TargetStore, UpsertResult
from roster_ingestion.store.sql_store import SqlTargetStore

__all__ = [
    "StoredUser",
    "TargetStore",
    "UpsertResult",
    "SqlTargetStore",
]
