"""
Module: ledger_kernel.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management,
    and the transactional scopes that implement the single-writer /
    multiple-reader model of the embedded ledger store.
Architecture position: Kernel > DB.  May import from db/base.py.
    MUST NOT import from services/, selectors/, domain/, or outer layers
    (except for create_tables, which imports the model registries).

Invariants enforced:
    - The embedded store is a SQLite file.  Foreign keys are switched on for
      every connection (cascade / restrict semantics live in the schema).
    - Single writer: write_scope() holds a process-wide lock AND opens the
      SQLite transaction with BEGIN IMMEDIATE, so two writers (threads or
      processes) can never interleave a read-then-write sequence such as
      "read max entry number, insert entry".
    - Many readers: read_scope() opens a deferred transaction; with WAL
      journaling a reader sees either the state before or after any write,
      never a header without its lines.
    - Atomicity: on exception inside a scope the whole transaction is rolled
      back and the exception propagates.

Failure modes:
    - RuntimeError if get_engine/get_session are called before
      init_engine_from_url().
    - sqlalchemy.exc.OperationalError ("database is locked") if another
      process holds the write lock longer than busy_timeout.
"""

import threading
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ledger_kernel.logging_config import get_logger

logger = get_logger("db.engine")

# Execution option / session.info key marking a write transaction
WRITE_OPTION = "ledger_write"

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None

# Serializes writers inside this process; BEGIN IMMEDIATE covers other processes.
_write_lock = threading.RLock()


def _install_sqlite_listeners(engine: Engine, busy_timeout_ms: int) -> None:
    """Take over SQLite transaction control so writers can BEGIN IMMEDIATE."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Disable pysqlite's implicit BEGIN; the "begin" listener emits it.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        if conn.get_execution_options().get(WRITE_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    busy_timeout_ms: int = 30000,
) -> Engine:
    """
    Initialize the SQLAlchemy engine for the ledger store.

    Preconditions: database_url is a SQLAlchemy URL, normally
        ``sqlite:///path/to/ledger.db``.
    Postconditions: Module-level engine and session factory are initialized
        (a second call replaces the first).

    Args:
        database_url: Database URL.
        echo: If True, log all SQL statements.
        busy_timeout_ms: How long a connection waits for another process's
            write lock before failing.

    Returns:
        SQLAlchemy Engine instance.
    """
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()

    connect_args = {}
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        # Pooled connections are handed to whichever thread checks them out;
        # writer serialization is done by write_scope().
        connect_args["check_same_thread"] = False

    _engine = create_engine(
        database_url,
        echo=echo,
        connect_args=connect_args,
    )
    if is_sqlite:
        _install_sqlite_listeners(_engine, busy_timeout_ms)

    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    logger.info(
        "engine_initialized",
        extra={
            "dialect": _engine.dialect.name,
            "echo": echo,
        },
    )
    return _engine


def get_engine() -> Engine:
    """
    Get the current engine instance.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def get_session() -> Session:
    """
    Get a new session instance.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory()


def is_write_session(session: Session) -> bool:
    """True iff the session was opened by write_scope()."""
    return bool(session.info.get(WRITE_OPTION))


@contextmanager
def write_scope() -> Generator[Session, None, None]:
    """
    Serialized, atomic write transaction.

    Preconditions: Engine initialized.  Must not be nested inside another
        write_scope() on the same thread.
    Postconditions: On normal exit the session is committed; on exception
        it is rolled back and the exception re-raised.  Either every row
        written inside the scope is visible afterwards, or none is.

    Usage:
        with write_scope() as session:
            JournalService(session).create_entry(ctx, spec)
    """
    with _write_lock:
        session = get_session()
        session.info[WRITE_OPTION] = True
        # Open the transaction first so the "begin" listener sees the option.
        session.connection(execution_options={WRITE_OPTION: True})
        logger.debug("write_transaction_started")
        try:
            yield session
            session.commit()
            logger.debug("write_transaction_committed")
        except Exception:
            session.rollback()
            logger.warning("write_transaction_rolled_back", exc_info=True)
            raise
        finally:
            session.close()


@contextmanager
def read_scope() -> Generator[Session, None, None]:
    """
    Read-only transaction with snapshot semantics.

    The session is always rolled back on exit; nothing done inside a read
    scope is ever persisted.
    """
    session = get_session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def create_tables() -> None:
    """
    Create every kernel table registered on Base.metadata.

    Document module tables are added by
    ledger_modules._orm_registry.create_all_tables(), which imports their
    ORM modules first.

    Preconditions: Engine must be initialized via init_engine_from_url().
    Postconditions: All tables exist (existing tables are left untouched).
    """
    from ledger_kernel.db.base import Base
    from ledger_kernel.models import import_all_models

    import_all_models()
    Base.metadata.create_all(get_engine())
    logger.info("tables_created", extra={"table_count": len(Base.metadata.tables)})


def reset_engine() -> None:
    """Reset the engine and session factory. Useful for test cleanup."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
        _engine = None

    _SessionFactory = None
