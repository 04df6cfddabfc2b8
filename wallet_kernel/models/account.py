"""
Module: wallet_kernel.models.account
Responsibility: ORM persistence for named wallet accounts.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - username is the primary key and never changes (ORM listener in
      db/immutability.py).
    - Accounts are never deleted (ORM listener in db/immutability.py).
    - balance is written only by LedgerService, always together with a
      transactions row in the same database transaction.

Failure modes:
    - IntegrityError on INSERT of an existing username (AccountRepository
      checks first and raises AccountAlreadyExistsError instead).
"""

from decimal import Decimal

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from wallet_kernel.db.base import Base
from wallet_kernel.db.types import USERNAME_MAX_LENGTH


class Account(Base):
    """
    A single wallet account.

    Contract:
        Created with balance 0.  The stored balance always equals the sum
        of the signed amounts of the account's transaction records.

    Non-goals:
        - No password or credential storage.
        - No currency column; the ledger is single-currency.
    """

    __tablename__ = "accounts"

    username: Mapped[str] = mapped_column(
        String(USERNAME_MAX_LENGTH),
        primary_key=True,
    )

    # Current balance in exact minor units
    balance: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=Decimal("0.00"),
    )

    def __repr__(self) -> str:
        return f"<Account {self.username}: {self.balance}>"
