"""
Structured JSON logging for roster synchronization.

Every record under the ``roster_kernel`` logger namespace is written as one
JSON object per line.  Run-scoped fields (the sync run id, the scope org, the
CSV file being read) live in ``LogContext`` and are merged into every record
emitted while they are bound, so services only pass event-specific data in
``extra``.

Usage::

    logger = get_logger("ingestion.extraction_service")
    with LogContext.bind(correlation_id=run_id, source_file="users.csv"):
        logger.info("table_read", extra={"rows": 42})
"""

from __future__ import annotations

__all__ = [
    "CONTEXT_FIELDS",
    "LogContext",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import date, datetime, timezone
from types import MappingProxyType
from typing import Any, Iterator, Mapping
from uuid import UUID

_LOGGER_PREFIX = "roster_kernel"

CONTEXT_FIELDS: tuple[str, ...] = (
    "correlation_id",
    "actor_id",
    "trace_id",
    "producer",
    "scope_org",
    "source_file",
    "entity_type",
    "stage",
)

_EMPTY: Mapping[str, str] = MappingProxyType({})
_context: ContextVar[Mapping[str, str]] = ContextVar("roster_log_context", default=_EMPTY)


class LogContext:
    """Run-scoped log fields, isolated per thread and per asyncio task."""

    @staticmethod
    def _merge(fields: Mapping[str, str | None]) -> Mapping[str, str]:
        unknown = set(fields) - set(CONTEXT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown log context field(s): {sorted(unknown)}")
        merged = dict(_context.get())
        merged.update({k: v for k, v in fields.items() if v is not None})
        return MappingProxyType(merged)

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Set context fields. None values leave the current value alone."""
        _context.set(cls._merge(fields))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return {name: _context.get()[name] for name in CONTEXT_FIELDS if name in _context.get()}

    @classmethod
    def clear(cls) -> None:
        _context.set(_EMPTY)

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[type[LogContext]]:
        """Set fields for the duration of a with-block, then restore the previous ones."""
        token = _context.set(cls._merge(fields))
        try:
            yield cls
        finally:
            _context.reset(token)


# Attributes every LogRecord carries; anything else on a record came from ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def _to_json(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # RosterSyncError subclasses keep their structured data as public attributes
    for name, value in vars(exc).items():
        if not name.startswith("_") and name != "code":
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: ts, level, logger, message, context, extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(LogContext.get_all())
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in payload
        )
        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=_to_json)


def get_logger(name: str) -> logging.Logger:
    """Logger named ``roster_kernel.<name>``."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler to the ``roster_kernel`` logger.

    Only the first call has an effect; later calls are ignored until
    ``reset_logging()``.  Output goes to ``handler`` if given, else a stream
    handler on ``stream`` (stderr by default) so stdout stays free for the
    CLI's JSON report.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())

    root = logging.getLogger(_LOGGER_PREFIX)
    root.setLevel(level)
    root.propagate = False
    root.addHandler(handler)


def reset_logging() -> None:
    """Undo configure_logging(). Tests only."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(_LOGGER_PREFIX)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    root.propagate = True
