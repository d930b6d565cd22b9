"""
Shared fixtures for the roster sync tests.

The database is SQLite in memory unless DATABASE_URL points elsewhere (for
example a throwaway PostgreSQL database).  Tables are created once per test
session; each test runs inside a transaction that is rolled back afterwards,
so tests never see each other's rows.
"""

import json
import logging
import os
from datetime import datetime, timezone
from io import StringIO
from pathlib import Path
from typing import Callable, Iterator

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from roster_kernel.db.engine import create_tables, drop_tables, init_engine_from_url, reset_engine
from roster_kernel.domain.clock import DeterministicClock
from roster_kernel.logging_config import LogContext, StructuredFormatter, configure_logging, reset_logging

from roster_ingestion.store import SqlTargetStore

from tests.ingestion.roster_fixtures import write_full_dataset, write_minimal_dataset

SCOPE_ORG = "org-sch-222-456"


def pytest_configure(config):
    config.addinivalue_line("markers", "postgres: needs DATABASE_URL pointing at PostgreSQL")


# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------


@pytest.fixture(autouse=True, scope="session")
def _suite_logging():
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _no_leftover_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs() -> Iterator[Callable[[], list[dict]]]:
    """
    Records logged under ``roster_kernel`` during the test, parsed from JSON.

        def test_run_is_logged(captured_logs, client):
            client.synchronise()
            assert "sync_completed" in [r["message"] for r in captured_logs()]
    """
    buffer = StringIO()
    handler = logging.StreamHandler(buffer)
    handler.setFormatter(StructuredFormatter())
    roster_logger = logging.getLogger("roster_kernel")
    level = roster_logger.level
    roster_logger.setLevel(logging.DEBUG)
    roster_logger.addHandler(handler)

    yield lambda: [json.loads(line) for line in buffer.getvalue().splitlines() if line]

    roster_logger.removeHandler(handler)
    roster_logger.setLevel(level)


# -----------------------------------------------------------------------------
# Database
# -----------------------------------------------------------------------------


@pytest.fixture(scope="session")
def db_engine() -> Iterator[Engine]:
    engine = init_engine_from_url(os.environ.get("DATABASE_URL", "sqlite:///:memory:"))
    yield engine
    reset_engine()


@pytest.fixture(scope="session")
def db_tables(db_engine):
    drop_tables()
    create_tables()
    yield
    drop_tables()


@pytest.fixture
def session(db_tables, db_engine) -> Iterator[Session]:
    """
    Session joined to an outer transaction that is rolled back at teardown.

    ``begin_nested()`` and ``commit()`` inside the code under test turn into
    SAVEPOINTs on that transaction, so nothing outlives the test.
    """
    connection = db_engine.connect()
    outer = connection.begin()
    sess = Session(bind=connection, join_transaction_mode="create_savepoint", expire_on_commit=False)
    try:
        yield sess
    finally:
        sess.close()
        outer.rollback()
        connection.close()


@pytest.fixture
def store(session) -> SqlTargetStore:
    return SqlTargetStore(session)


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock(datetime(2024, 9, 1, 8, 0, tzinfo=timezone.utc))


# -----------------------------------------------------------------------------
# OneRoster exports
# -----------------------------------------------------------------------------


@pytest.fixture
def scope_org() -> str:
    return SCOPE_ORG


@pytest.fixture
def full_dataset_dir(tmp_path) -> Path:
    return write_full_dataset(tmp_path / "full")


@pytest.fixture
def minimal_dataset_dir(tmp_path) -> Path:
    return write_minimal_dataset(tmp_path / "minimal")
