"""
Module: paybook_kernel.db.engine
Responsibility: Owns the process-wide SQLAlchemy engine and session factory
    and the commit-or-rollback unit of work used around every payroll and
    ledger operation.
Architecture position: Kernel > DB.  May import from db/base.py and the
    logging configuration only.

Invariants enforced:
    - PostgreSQL (production) runs pooled connections at READ COMMITTED;
      entry-number allocation relies on SELECT ... FOR UPDATE on top of it.
    - SQLite (tests, local tooling) shares one connection, enforces foreign
      keys, and issues an explicit BEGIN so SAVEPOINTs behave.

Failure modes:
    - RuntimeError when a session or the engine is requested before
      init_engine_from_url(), or when no URL is passed and
      PAYBOOK_DATABASE_URL is unset.
"""

import atexit
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from paybook_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

DATABASE_URL_ENV = "PAYBOOK_DATABASE_URL"

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def _sqlite_options() -> dict[str, Any]:
    return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}


def _postgres_options(pool_size: int, max_overflow: int, pool_timeout: int,
                      pool_recycle: int) -> dict[str, Any]:
    return {
        "poolclass": QueuePool,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": True,
        "pool_timeout": pool_timeout,
        "pool_recycle": pool_recycle,
        "isolation_level": "READ COMMITTED",
    }


def _enable_sqlite_transactions(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _connect(dbapi_connection, _record):
        # pysqlite otherwise opens transactions lazily and breaks SAVEPOINT
        dbapi_connection.isolation_level = None
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")


def init_engine_from_url(
    database_url: str | None = None,
    *,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 10,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Create the engine and session factory, replacing any previous ones.

    ``database_url`` defaults to ``$PAYBOOK_DATABASE_URL``.  Pool settings
    apply to PostgreSQL only.
    """
    global _engine, _session_factory

    url = database_url or os.environ.get(DATABASE_URL_ENV)
    if not url:
        raise RuntimeError(f"No database URL given and {DATABASE_URL_ENV} is not set")

    backend = make_url(url).get_backend_name()
    if backend == "sqlite":
        options = _sqlite_options()
    else:
        options = _postgres_options(pool_size, max_overflow, pool_timeout, pool_recycle)

    reset_engine()
    _engine = create_engine(url, echo=echo, **options)
    if backend == "sqlite":
        _enable_sqlite_transactions(_engine)
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info("engine_initialized", extra={"dialect": backend, "echo": echo})
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Database not initialized; call init_engine_from_url() first")
    return _engine


def get_session() -> Session:
    """A new session bound to the current engine.  The caller closes it."""
    if _session_factory is None:
        raise RuntimeError("Database not initialized; call init_engine_from_url() first")
    return _session_factory()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    One unit of work: commit on success, roll back and re-raise on error.

        with session_scope() as session:
            PayrollService(session).void_payroll_record(record_id, reason, actor_id)
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """
    Create the kernel tables.

    ``paybook_modules._orm_registry.create_all_tables`` also registers the
    module tables and is what applications and tests call.
    """
    import paybook_kernel.models  # noqa: F401
    import paybook_kernel.services.sequence_service  # noqa: F401
    from paybook_kernel.db.base import Base

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    """Drop every registered table.  Test teardown on PostgreSQL uses this."""
    from paybook_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine so the next init_engine_from_url() starts clean."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


def is_postgres() -> bool:
    return _engine is not None and _engine.dialect.name == "postgresql"


atexit.register(reset_engine)
