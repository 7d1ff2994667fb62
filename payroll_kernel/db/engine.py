"""
Module: payroll_kernel.db.engine
Responsibility: The one place a database connection is configured.  Holds the
    process-wide engine and session factory and the commit-or-rollback scope.
Architecture position: Kernel > DB.  ``create_tables`` reaches up into
    ``payroll_modules._orm_registry`` through an inline import so that every
    module table is in ``Base.metadata``; nothing else here imports outward.

Backends:
    PostgreSQL   production.  READ COMMITTED; payroll approval relies on
                 ``SELECT ... FOR UPDATE`` over payroll records and salary
                 advances for serialisation.
    SQLite       tests and single-user runs.  ``FOR UPDATE`` is ignored.
                 ``sqlite://`` (in-memory) uses one shared connection so
                 every session sees the same database.

Sessions keep loaded attributes after commit (``expire_on_commit=False``)
so services can build DTOs from rows they just committed.
"""

import atexit
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from payroll_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_sessions: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "Database not initialized; call init_engine_from_url() first"


def _sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_engine(database_url: str, echo: bool, pool_size: int) -> Engine:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(
            url,
            echo=echo,
            pool_size=pool_size,
            max_overflow=pool_size // 2,
            pool_pre_ping=True,
            isolation_level="READ COMMITTED",
        )

    options: dict = {"echo": echo, "connect_args": {"check_same_thread": False}}
    if url.database in (None, "", ":memory:"):
        options["poolclass"] = StaticPool
    engine = create_engine(url, **options)
    event.listen(engine, "connect", _sqlite_foreign_keys)
    return engine


def init_engine_from_url(database_url: str, echo: bool = False, pool_size: int = 10) -> Engine:
    """Create (or replace) the process engine and session factory."""
    global _engine, _sessions

    if _engine is not None:
        _engine.dispose()
    _engine = _build_engine(database_url, echo, pool_size)
    _sessions = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info("engine_initialized", extra={
        "dialect": _engine.dialect.name,
        "database": _engine.url.render_as_string(hide_password=True),
    })
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session() -> Session:
    if _sessions is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _sessions()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    A session committed on normal exit, rolled back and re-raised on error,
    and closed either way.

        with session_scope() as session:
            PayrollService(session, directory, attendance, leave).generate_payroll(...)
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("session_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables(install_listeners: bool = True) -> None:
    """Create every module table; by default also arm the immutability listeners."""
    from payroll_kernel.db.base import Base
    from payroll_kernel.db.immutability import register_immutability_listeners
    from payroll_modules._orm_registry import import_all_orm_models

    import_all_orm_models()
    Base.metadata.create_all(get_engine())
    if install_listeners:
        register_immutability_listeners()
    logger.info("tables_created", extra={"tables": sorted(Base.metadata.tables)})


def drop_tables() -> None:
    """Drop every table.  Test teardown on non-memory databases only."""
    from payroll_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _sessions

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _sessions = None


@atexit.register
def _dispose_at_exit() -> None:
    if _engine is not None:
        _engine.dispose()
