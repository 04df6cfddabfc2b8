"""
Module: wallet_kernel.models.transaction
Responsibility: ORM persistence for the append-only transaction log.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Rows are immutable once inserted: no UPDATE, no DELETE
      (ORM listeners in db/immutability.py).
    - A transfer is stored as two rows, one per side: ``transfer_out`` filed
      under the sender with ``recipient`` set, and ``transfer_in`` filed under
      the recipient with ``sender`` set.
    - new_balance = previous_balance + amount for credits and
      previous_balance - amount for debits.

Audit relevance:
    previous_balance / new_balance snapshots make every row checkable on its
    own, without replaying the account from the start.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from wallet_kernel.db.base import Base
from wallet_kernel.db.types import USERNAME_MAX_LENGTH


class TransactionKind(str, Enum):
    """Kinds of ledger movement."""

    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    TRANSFER_OUT = "transfer_out"
    TRANSFER_IN = "transfer_in"

    @property
    def is_credit(self) -> bool:
        """True if this kind increases the owner's balance."""
        return self in (TransactionKind.DEPOSIT, TransactionKind.TRANSFER_IN)

    @property
    def is_transfer(self) -> bool:
        return self in (TransactionKind.TRANSFER_OUT, TransactionKind.TRANSFER_IN)


class TransactionRecord(Base):
    """
    One immutable line of an account's history.

    Contract:
        ``username`` is the owner the row is filed under.  New rows set
        ``recipient`` only on transfer_out and ``sender`` only on
        transfer_in; older rows may carry both on either side.
    """

    __tablename__ = "transactions"

    __table_args__ = (
        Index("idx_transactions_username", "username"),
        Index("idx_transactions_sender", "sender"),
    )

    # Monotonic rowid: insertion order is history order
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    username: Mapped[str] = mapped_column(
        String(USERNAME_MAX_LENGTH),
        nullable=False,
    )

    transaction_type: Mapped[TransactionKind] = mapped_column(
        String(20),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    recipient: Mapped[str | None] = mapped_column(
        String(USERNAME_MAX_LENGTH),
        nullable=True,
    )

    sender: Mapped[str | None] = mapped_column(
        String(USERNAME_MAX_LENGTH),
        nullable=True,
    )

    previous_balance: Mapped[Decimal] = mapped_column(nullable=False)

    new_balance: Mapped[Decimal] = mapped_column(nullable=False)

    timestamp: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return (
            f"<TransactionRecord #{self.id} {self.username} "
            f"{self.transaction_type} {self.amount}>"
        )
