"""
TargetStore protocol and UpsertResult.

The target store is the system of record the reconciliation engine writes
to.  Each upsert must be atomic with respect to its own existence check;
the SQL implementation runs every upsert inside a SAVEPOINT.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol
from uuid import UUID


@dataclass(frozen=True)
class UpsertResult:
    """Persisted id of the upserted entity and whether it was newly created."""

    entity_id: UUID
    created: bool


@dataclass(frozen=True)
class StoredUser:
    """Identity fields of a user account already in the store."""

    entity_id: UUID
    username: str
    sourced_id: str | None


class TargetStore(Protocol):
    """Create/read/update primitives for synchronized roster entities."""

    def upsert_organization(self, sourced_id: str, attributes: Mapping[str, Any]) -> UpsertResult:
        """Create or update the organization keyed by sourced_id."""
        ...

    def upsert_user(self, sourced_id: str, attributes: Mapping[str, Any]) -> UpsertResult:
        """Create or update the user keyed by sourced_id (adopting an unowned account with the same username)."""
        ...

    def upsert_course(self, sourced_id: str, attributes: Mapping[str, Any]) -> UpsertResult:
        """Create or update the course keyed by sourced_id."""
        ...

    def upsert_enrollment(self, user_id: UUID, course_id: UUID, attributes: Mapping[str, Any]) -> UpsertResult:
        """Create the (user, course) enrollment, or update its role if it exists."""
        ...

    def find_user_by_sourced_id(self, sourced_id: str) -> StoredUser | None:
        ...

    def find_user_by_username(self, username: str) -> StoredUser | None:
        ...
