"""
Module: wallet_kernel.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management,
    and transactional scope utilities.  This is the single point of database
    connection configuration for the application.
Architecture position: Kernel > DB.  May import from db/base.py.
    MUST NOT import from services/, selectors/, domain/, or outer layers
    (except for create_tables/drop_tables which import models).

Invariants enforced:
    - The local store is SQLite.  In-memory URLs share one connection
      (StaticPool) so every session sees the same database.
    - Sessions never expire attributes on commit, so DTOs can be built
      from rows after the transaction has ended.

Failure modes:
    - RuntimeError if get_engine/get_session/get_session_factory called before
      init_engine_from_url().
    - sqlalchemy.exc.OperationalError if the database file cannot be opened.

Audit relevance:
    The session_scope() context manager gives commit-or-rollback semantics
    for callers that do not go through LedgerService.
"""

import atexit
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from wallet_kernel.logging_config import get_logger

logger = get_logger("db.engine")

# Module-level engine and session factory
_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def _is_memory_url(database_url: str) -> bool:
    return database_url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in database_url


def init_engine_from_url(database_url: str, echo: bool = False) -> Engine:
    """
    Initialize the SQLAlchemy engine from a SQLite database URL.

    Preconditions: database_url is a SQLAlchemy SQLite URL
        (e.g. sqlite:///ewallet.db or sqlite:// for in-memory).
    Postconditions: Module-level _engine and _SessionFactory are initialized.
        A second call replaces the first.

    Args:
        database_url: SQLAlchemy connection URL.
        echo: If True, log all SQL statements.

    Returns:
        SQLAlchemy Engine instance.
    """
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()

    if _is_memory_url(database_url):
        _engine = create_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        _engine = create_engine(database_url, echo=echo)

    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    logger.info(
        "engine_initialized",
        extra={
            "dialect": _engine.dialect.name,
            "database": _engine.url.database or ":memory:",
            "echo": echo,
        },
    )

    return _engine


_NOT_INITIALIZED = "Engine not initialized. Call init_engine_from_url() first."


def get_engine() -> Engine:
    """The engine created by the last ``init_engine_from_url()`` call."""
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    if _SessionFactory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _SessionFactory


def get_session() -> Session:
    """
    Open a new ORM session on the current engine.

    The CLI opens one session for its whole run and hands it to
    LedgerService, which commits or rolls back per operation.
    """
    return get_session_factory()()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    One commit-or-rollback unit of work in a short-lived session.

    The body's exception is re-raised after the rollback; the session is
    closed either way.

    Usage:
        with session_scope() as session:
            AccountRepository(session).create("alice")
    """
    session = get_session()
    logger.debug("session_scope_opened")
    try:
        yield session
        session.commit()
        logger.debug("session_scope_committed")
    except Exception:
        session.rollback()
        logger.warning("session_scope_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def _metadata():
    from wallet_kernel.db.base import Base
    import wallet_kernel.models  # noqa: F401  registers both tables on Base.metadata

    return Base.metadata


def create_tables() -> None:
    """
    Create ``accounts`` and ``transactions`` if they do not exist yet.

    Existing tables, and the rows in them, are left untouched.
    """
    metadata = _metadata()
    metadata.create_all(get_engine())
    logger.info("tables_created", extra={"tables": sorted(metadata.tables)})


def drop_tables() -> None:
    """Drop both tables and everything in them. Test fixtures only."""
    _metadata().drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


@atexit.register
def _dispose_on_exit() -> None:
    if _engine is not None:
        _engine.dispose()
