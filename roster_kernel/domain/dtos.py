"""Validation DTOs shared by the ingestion validators and services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ValidationError:
    """
    One problem found by a pre-check, returned rather than raised.

    ``field`` names the offending column or attribute when there is one;
    ``details`` holds whatever the caller needs to point at the row
    (file, source row, sourcedId).
    """

    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "field": self.field, "details": self.details}
