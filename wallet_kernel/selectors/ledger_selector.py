"""
Module: wallet_kernel.selectors.ledger_selector
Responsibility: Read-only audit queries over the wallet ledger.  Replays an
    account's transaction rows to check them against the stored balance, and
    computes ledger-wide totals for the conservation check.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/ and selectors/base.py.

Invariants checked:
    - Each row: new_balance = previous_balance +/- amount.
    - Consecutive rows of one account chain: previous_balance of row n+1
      equals new_balance of row n.  The first row starts from zero.
    - Stored balance = last new_balance = sum of signed amounts.
    - Conservation: sum of balances = deposits - withdrawals.

Failure modes:
    - verify_account() raises UserNotFoundError for an unknown account.
      Inconsistencies are reported, never raised.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func, select

from wallet_kernel.db.types import zero_money
from wallet_kernel.domain.dtos import AccountInfo
from wallet_kernel.exceptions import UserNotFoundError
from wallet_kernel.models.account import Account
from wallet_kernel.models.transaction import TransactionKind, TransactionRecord
from wallet_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class AccountAudit:
    """Result of replaying one account's transaction rows."""

    username: str
    record_count: int
    stored_balance: Decimal
    computed_balance: Decimal
    discrepancies: tuple[str, ...] = ()

    @property
    def is_consistent(self) -> bool:
        return not self.discrepancies


class LedgerSelector(BaseSelector[TransactionRecord]):
    """
    Selector for audit and ledger-wide totals.

    Guarantees:
        - Every amount returned is a Decimal at the cent exponent.
        - Rows are replayed in id order, which is insertion order.
    """

    def verify_account(self, username: str) -> AccountAudit:
        """
        Replay every row filed under ``username`` and compare the result
        with the stored balance.

        Raises:
            UserNotFoundError: If the account does not exist.
        """
        account = self.session.get(Account, username)
        if account is None:
            raise UserNotFoundError(username)

        rows = self.session.execute(
            select(TransactionRecord)
            .where(TransactionRecord.username == username)
            .order_by(TransactionRecord.id)
        ).scalars().all()

        problems: list[str] = []
        running = zero_money()
        for row in rows:
            kind = TransactionKind(row.transaction_type)
            delta = row.amount if kind.is_credit else -row.amount
            if row.previous_balance + delta != row.new_balance:
                problems.append(
                    f"#{row.id} {kind.value}: {row.previous_balance} "
                    f"{'+' if kind.is_credit else '-'} {row.amount} "
                    f"!= {row.new_balance}"
                )
            if row.previous_balance != running:
                problems.append(
                    f"#{row.id} starts at {row.previous_balance}, "
                    f"expected {running}"
                )
            if row.new_balance < 0:
                problems.append(f"#{row.id} leaves a negative balance {row.new_balance}")
            running = row.previous_balance + delta

        if rows and rows[-1].new_balance != account.balance:
            problems.append(
                f"last record ends at {rows[-1].new_balance}, "
                f"stored balance is {account.balance}"
            )
        if running != account.balance:
            problems.append(
                f"replayed balance {running} != stored balance {account.balance}"
            )

        return AccountAudit(
            username=username,
            record_count=len(rows),
            stored_balance=account.balance,
            computed_balance=running,
            discrepancies=tuple(problems),
        )

    def total_balance(self) -> Decimal:
        """Sum of every account's stored balance."""
        total = self.session.execute(select(func.sum(Account.balance))).scalar()
        return total if total is not None else zero_money()

    def _sum_of(self, kind: TransactionKind) -> Decimal:
        total = self.session.execute(
            select(func.sum(TransactionRecord.amount)).where(
                TransactionRecord.transaction_type == kind.value
            )
        ).scalar()
        return total if total is not None else zero_money()

    def net_external_flow(self) -> Decimal:
        """Deposits minus withdrawals across all accounts."""
        return self._sum_of(TransactionKind.DEPOSIT) - self._sum_of(
            TransactionKind.WITHDRAW
        )

    def list_accounts(self) -> tuple[AccountInfo, ...]:
        """All accounts, ordered by username."""
        accounts = self.session.execute(
            select(Account).order_by(Account.username)
        ).scalars().all()
        return tuple(AccountInfo.from_model(a) for a in accounts)
