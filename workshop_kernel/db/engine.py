"""
Module: workshop_kernel.db.engine
Responsibility: SQLAlchemy engine initialization and schema creation.
    Single point of database connection configuration for the whole
    workshop.  Sessions are opened by the caller on the engine.
Architecture position: Kernel > DB.  May import from db/base.py.
    MUST NOT import from models/, services/, selectors/, domain/, or outer
    layers (except create_tables, which loads the ORM registry).

Invariants enforced:
    - PostgreSQL is the production backend (READ COMMITTED, pooled
      connections with pre-ping).  SQLite is accepted for local runs and the
      test suite; it gets a static pool for in-memory URLs and explicit
      BEGIN handling so SAVEPOINTs behave.

Failure modes:
    - RuntimeError if get_engine() is called before init_engine_from_url().
"""

import atexit

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import QueuePool, StaticPool

from workshop_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None


def build_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 5,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Create an engine for PostgreSQL or SQLite without touching module state.

    Pool arguments only apply to server backends.
    """
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        kwargs: dict = {"echo": echo}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
            kwargs["connect_args"] = {"check_same_thread": False}
        engine = create_engine(url, **kwargs)
        _install_sqlite_transaction_hooks(engine)
        return engine

    return create_engine(
        url,
        echo=echo,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=pool_pre_ping,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        isolation_level="READ COMMITTED",
    )


def _install_sqlite_transaction_hooks(engine: Engine) -> None:
    # pysqlite starts transactions lazily and breaks SAVEPOINT; let
    # SQLAlchemy emit BEGIN itself.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def init_engine_from_url(database_url: str, echo: bool = False, **pool_kwargs) -> Engine:
    """
    Initialize the module-level engine.

    Postconditions: all subsequent get_engine calls use this engine.  A
        second call replaces the first.
    """
    global _engine

    _engine = build_engine(database_url, echo=echo, **pool_kwargs)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={"dialect": _engine.dialect.name, "echo": echo},
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def create_tables(engine: Engine | None = None) -> None:
    """
    Create every table registered by the workshop modules.

    All ORM models are imported first so Base.metadata is complete.
    """
    from workshop_kernel.db.base import Base
    from workshop_modules._orm_registry import import_all_orm_models

    import_all_orm_models()
    Base.metadata.create_all(engine or get_engine())


def drop_tables(engine: Engine | None = None) -> None:
    """Drop all tables. Use with caution - primarily for testing."""
    from workshop_kernel.db.base import Base
    from workshop_modules._orm_registry import import_all_orm_models

    import_all_orm_models()
    Base.metadata.drop_all(engine or get_engine())


def reset_engine() -> None:
    """Dispose and forget the module-level engine (test cleanup)."""
    global _engine

    if _engine is not None:
        _engine.dispose()
        _engine = None


def _atexit_dispose():
    if _engine is not None:
        _engine.dispose()


atexit.register(_atexit_dispose)
