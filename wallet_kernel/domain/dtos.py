"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Immutable values handed from the kernel to the presentation layer:
    AccountInfo and TransactionEntry.  Services convert ORM rows into these
    at the boundary so callers never hold live ORM objects.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_model() class methods are boundary converters only invoked from
    the service and selector layers.

Invariants enforced:
    - TransactionEntry carries exactly one counterparty for transfers and
      none for deposits and withdrawals.
    - balance_after = balance_before +/- amount, checked on construction.

Failure modes:
    - ValueError from TransactionEntry.__post_init__ on a malformed entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from wallet_kernel.models.transaction import TransactionKind

if TYPE_CHECKING:
    from wallet_kernel.models.account import Account as AccountModel
    from wallet_kernel.models.transaction import (
        TransactionRecord as TransactionRecordModel,
    )


@dataclass(frozen=True)
class AccountInfo:
    """Immutable snapshot of an account."""

    username: str
    balance: Decimal

    @classmethod
    def from_model(cls, model: AccountModel) -> AccountInfo:
        return cls(username=model.username, balance=model.balance)


@dataclass(frozen=True)
class TransactionEntry:
    """
    One line of an account's history, as seen by its owner.

    Contract:
        ``counterparty`` is the recipient for TRANSFER_OUT, the sender for
        TRANSFER_IN, and None for DEPOSIT / WITHDRAW.

    Guarantees:
        - amount > 0.
        - balance_after == balance_before + signed_amount.
    """

    id: int
    owner: str
    kind: TransactionKind
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    timestamp: datetime
    counterparty: str | None = None

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ValueError(f"Transaction amount must be positive, got {self.amount}")
        if self.kind.is_transfer and not self.counterparty:
            raise ValueError(f"{self.kind.value} entry requires a counterparty")
        if not self.kind.is_transfer and self.counterparty is not None:
            raise ValueError(f"{self.kind.value} entry cannot have a counterparty")
        if self.balance_before + self.signed_amount != self.balance_after:
            raise ValueError(
                f"Entry {self.id}: {self.balance_before} {self.kind.value} "
                f"{self.amount} does not give {self.balance_after}"
            )

    @property
    def signed_amount(self) -> Decimal:
        """Effect of this entry on the owner's balance."""
        return self.amount if self.kind.is_credit else -self.amount

    @property
    def recipient(self) -> str | None:
        return self.counterparty if self.kind == TransactionKind.TRANSFER_OUT else None

    @property
    def sender(self) -> str | None:
        return self.counterparty if self.kind == TransactionKind.TRANSFER_IN else None

    @classmethod
    def from_model(cls, model: TransactionRecordModel) -> TransactionEntry:
        kind = TransactionKind(model.transaction_type)
        if kind == TransactionKind.TRANSFER_OUT:
            counterparty = model.recipient or model.sender
        elif kind == TransactionKind.TRANSFER_IN:
            counterparty = model.sender or model.recipient
        else:
            counterparty = None
        return cls(
            id=model.id,
            owner=model.username,
            kind=kind,
            amount=model.amount,
            balance_before=model.previous_balance,
            balance_after=model.new_balance,
            timestamp=model.timestamp,
            counterparty=counterparty,
        )
