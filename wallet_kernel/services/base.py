"""
BaseService -- abstract base for the kernel's write-side services.

Responsibility:
    Provides the common constructor and session-handling contract for
    AccountRepository and TransactionLog.  Both receive a SQLAlchemy
    ``Session`` and persist with ``session.flush()`` -- never
    ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    Transaction boundaries belong to the caller.  LedgerService owns
    commit/rollback so that a balance update and its log row (or the four
    writes of a transfer) land together or not at all.

Failure modes:
    - A subclass that commits on its own breaks transfer atomicity: a
      debited sender could be persisted without the matching credit.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from wallet_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for flush-only kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.

    Non-goals:
        - Does NOT provide audit queries -- those belong in
          ``wallet_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
