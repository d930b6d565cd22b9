"""
Pre-packaged validators for roster CSV cells and records.

Cell-level rules check a raw CSV string against its declared ColumnType.
Record-level rules (users pre-check) return ValidationError DTOs.

Architecture: roster_ingestion/domain. ZERO I/O.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Sequence

from roster_kernel.domain.dtos import ValidationError

from roster_ingestion.domain.schemas import USER_ROLES
from roster_ingestion.domain.types import ColumnSpec, ColumnType, UserRecord

_IDENTIFIER_RE = re.compile(r"^[^\s,]+$")
_YEAR_RE = re.compile(r"^\d{4}$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_BOOLEANS = frozenset({"true", "false"})


# -----------------------------------------------------------------------------
# Cell-level validators
# -----------------------------------------------------------------------------


def _check_date(value: str) -> str | None:
    if not _DATE_RE.match(value):
        return "expected date YYYY-MM-DD"
    try:
        date.fromisoformat(value)
    except ValueError:
        return "expected date YYYY-MM-DD"
    return None


def _check_datetime(value: str) -> str | None:
    raw = value[:-1] + "+00:00" if value.endswith("Z") else value
    if not _DATE_RE.match(raw[:10]):
        return "expected ISO 8601 datetime"
    try:
        datetime.fromisoformat(raw)
    except ValueError:
        return "expected ISO 8601 datetime"
    return None


def validate_cell(value: str | None, spec: ColumnSpec) -> str | None:
    """
    Check one raw cell against its column spec.

    Returns None when the cell is valid, otherwise a short reason string.
    Blank cells are valid for optional columns.
    """
    raw = (value or "").strip()
    if not raw:
        return "required value is missing" if spec.required else None

    t = spec.column_type
    if t == ColumnType.STRING:
        return None
    if t == ColumnType.IDENTIFIER:
        if not _IDENTIFIER_RE.match(raw):
            return "identifier must not contain whitespace or commas"
        return None
    if t == ColumnType.IDENTIFIER_LIST:
        parts = [p.strip() for p in raw.split(",")]
        if any(not p or not _IDENTIFIER_RE.match(p) for p in parts):
            return "expected comma-separated identifiers"
        return None
    if t == ColumnType.ENUM:
        if raw not in spec.allowed:
            return f"expected one of {sorted(spec.allowed)}"
        return None
    if t == ColumnType.DATE:
        return _check_date(raw)
    if t == ColumnType.DATETIME:
        return _check_datetime(raw)
    if t == ColumnType.BOOLEAN:
        if raw not in _BOOLEANS:
            return "expected true or false"
        return None
    if t == ColumnType.YEAR:
        if not _YEAR_RE.match(raw):
            return "expected four-digit year"
        return None
    return f"unsupported column type {t.value}"


# -----------------------------------------------------------------------------
# Record-level validators (users pre-check)
# -----------------------------------------------------------------------------


def validate_user_record(user: UserRecord) -> list[ValidationError]:
    """A user needs a sourcedId, a known role, at least one org, and an identity to name it by."""
    errors: list[ValidationError] = []
    where = {"sourced_id": user.sourced_id, "source_row": user.source_row}
    if not user.sourced_id:
        errors.append(
            ValidationError(
                code="MISSING_REQUIRED_FIELD",
                message="User sourcedId is required",
                field="sourcedId",
                details=where,
            )
        )
    if user.role not in USER_ROLES:
        errors.append(
            ValidationError(
                code="INVALID_ROLE",
                message=f"User role must be one of {sorted(USER_ROLES)}",
                field="role",
                details={**where, "value": user.role},
            )
        )
    if not user.org_sourced_ids:
        errors.append(
            ValidationError(
                code="MISSING_REQUIRED_FIELD",
                message="User must belong to at least one org",
                field="orgSourcedIds",
                details=where,
            )
        )
    if not (user.username or (user.given_name and user.family_name) or user.identifier):
        errors.append(
            ValidationError(
                code="MISSING_IDENTITY",
                message="User needs a username, a given and family name, or an identifier",
                field="username",
                details=where,
            )
        )
    return errors


def validate_users(users: Sequence[UserRecord]) -> list[ValidationError]:
    """Run validate_user_record over every user, in file order."""
    errors: list[ValidationError] = []
    for user in users:
        errors.extend(validate_user_record(user))
    return errors
