"""
Pytest fixtures for the wallet test suite.

Provides:
- A fresh in-memory SQLite database per test (tables created, immutability
  listeners registered)
- ORM session, deterministic clock, user session and LedgerService
- Structured log capture
"""

import json
import logging
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from wallet_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from wallet_kernel.db.immutability import register_immutability_listeners
from wallet_kernel.domain.clock import DeterministicClock
from wallet_kernel.domain.messages import MessageBoard
from wallet_kernel.domain.user_session import UserSession
from wallet_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from wallet_kernel.selectors.ledger_selector import LedgerSelector
from wallet_kernel.services.account_repository import AccountRepository
from wallet_kernel.services.ledger_service import LedgerService
from wallet_kernel.services.transaction_log import TransactionLog

IN_MEMORY_URL = "sqlite://"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture wallet_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ledger):
            ledger.create_account("alice")
            logs = captured_logs()
            assert any(r["message"] == "create_account_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("wallet_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def db_engine():
    """A fresh in-memory database with both tables, disposed after the test."""
    eng = init_engine_from_url(IN_MEMORY_URL, echo=False)
    create_tables()
    register_immutability_listeners()
    yield eng
    reset_engine()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    """Provide a database session for testing."""
    sess = get_session()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock()


# =============================================================================
# Service fixtures
# =============================================================================


@pytest.fixture
def user_session():
    return UserSession()


@pytest.fixture
def ledger(session, user_session, deterministic_clock) -> LedgerService:
    """LedgerService with self-transfers rejected and the default history cap."""
    return LedgerService(session, user_session, clock=deterministic_clock)


@pytest.fixture
def accounts(session) -> AccountRepository:
    return AccountRepository(session)


@pytest.fixture
def transaction_log(session) -> TransactionLog:
    return TransactionLog(session)


@pytest.fixture
def selector(session) -> LedgerSelector:
    return LedgerSelector(session)


@pytest.fixture
def message_board(deterministic_clock) -> MessageBoard:
    return MessageBoard(deterministic_clock, timeout_seconds=5)


@pytest.fixture
def funded_alice(ledger):
    """'alice' logged in with $100.00, plus an empty 'bob' account."""
    ledger.create_account("bob")
    ledger.create_account("alice")
    ledger.deposit("100")
    return ledger
