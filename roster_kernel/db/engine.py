"""
Engine and session management for the roster store.

One process-wide engine, created by ``init_engine_from_url()``.  The CLI
wraps a whole sync run in ``session_scope()``; the store opens a SAVEPOINT
per upsert inside that transaction, so on SQLite pysqlite's implicit
transaction handling is switched off and SQLAlchemy emits BEGIN itself.

Calling get_engine()/get_session() before init_engine_from_url() raises
RuntimeError.
"""

from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import MetaData, create_engine, event
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from roster_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "Engine not initialized. Call init_engine_from_url() first."


def _engine_options(url: URL, pool_size: int, max_overflow: int) -> dict[str, Any]:
    if url.get_backend_name() == "sqlite":
        options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            # Every connection must see the same in-memory database
            options["poolclass"] = StaticPool
        return options
    return {
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": True,
        "isolation_level": "READ COMMITTED",
    }


def _enable_sqlite_savepoints(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
) -> Engine:
    """
    Create the process-wide engine and session factory, replacing any previous ones.

    pool_size and max_overflow apply to server databases only.
    """
    global _engine, _SessionFactory

    url = make_url(database_url)
    engine = create_engine(url, echo=echo, **_engine_options(url, pool_size, max_overflow))
    if url.get_backend_name() == "sqlite":
        _enable_sqlite_savepoints(engine)

    _engine = engine
    _SessionFactory = sessionmaker(bind=engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={"dialect": url.get_backend_name(), "database": url.database, "echo": echo},
    )
    return engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session() -> Session:
    """A new session bound to the current engine."""
    if _SessionFactory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _SessionFactory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    One transaction around a block: commit on normal exit, roll back and re-raise on error.

    Usage:
        with session_scope() as session:
            client = RosterSyncClient(SqlTargetStore(session), org_scope=scope)
    """
    session = get_session()
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def _roster_metadata() -> MetaData:
    from roster_kernel.db.base import Base
    import roster_kernel.models  # noqa: F401  (registers tables on Base.metadata)

    return Base.metadata


def create_tables() -> None:
    """Create every roster table that does not exist yet."""
    _roster_metadata().create_all(get_engine())


def drop_tables() -> None:
    """Drop every roster table. Tests only."""
    _roster_metadata().drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None
