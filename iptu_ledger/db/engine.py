"""
Database engine and sessions.

``create_ledger_engine`` builds an engine the ledger can run on;
``init_engine`` installs one built from a ``LedgerConfig`` as the process
default used by ``get_session``, ``session_scope`` and the table helpers.

Every ledger mutation runs inside ``session.begin_nested()``.  pysqlite
issues its own BEGIN and breaks SAVEPOINT handling, so SQLite engines are
told to leave transaction control to SQLAlchemy.  In-memory SQLite
databases live on a single shared connection.
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from iptu_ledger.config import LedgerConfig
from iptu_ledger.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_sessions: sessionmaker[Session] | None = None


def _enable_sqlite_savepoints(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _autocommit_driver(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_ledger_engine(database_url: str, echo: bool = False) -> Engine:
    """Engine for ``database_url`` with SAVEPOINTs working on every backend."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(url, echo=echo, pool_pre_ping=True)

    options: dict = {"connect_args": {"check_same_thread": False}}
    if url.database in (None, "", ":memory:"):
        options["poolclass"] = StaticPool
    engine = create_engine(url, echo=echo, **options)
    _enable_sqlite_savepoints(engine)
    return engine


def init_engine(config: LedgerConfig) -> Engine:
    """
    Make an engine built from ``config`` the process default.

    Also configures ledger logging at ``config.log_level``.  A second call
    replaces the previous engine without disposing it.
    """
    global _engine, _sessions

    configure_logging(level=config.logging_level)
    _engine = create_ledger_engine(config.database_url, echo=config.echo)
    _sessions = sessionmaker(bind=_engine, expire_on_commit=False)
    logger.info("engine_initialized", extra={"dialect": _engine.dialect.name, "echo": config.echo})
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("No database engine; call init_engine() first")
    return _engine


def get_session() -> Session:
    if _sessions is None:
        raise RuntimeError("No database engine; call init_engine() first")
    return _sessions()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Session committed on normal exit, rolled back if the block raises.

        with session_scope() as session:
            AssessmentLedger(session, transfer).pay_installment(...)
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
    from iptu_ledger.db.base import Base
    import iptu_ledger.models  # noqa: F401  (registers tables on Base.metadata)

    Base.metadata.create_all(get_engine())
    logger.info("tables_created", extra={"tables": sorted(Base.metadata.tables)})


def drop_tables() -> None:
    """Drop every ledger table. Tests only."""
    from iptu_ledger.db.base import Base
    import iptu_ledger.models  # noqa: F401

    Base.metadata.drop_all(get_engine())
    logger.info("tables_dropped")


def reset_engine() -> None:
    """Dispose the default engine. FOR TESTING ONLY."""
    global _engine, _sessions
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _sessions = None
