"""
AccountRepository -- create, look up and re-balance accounts.

Returns AccountInfo DTOs instead of ORM rows.  ``set_balance`` is an
unconditional overwrite: the caller computes the new value and is
responsible for writing the matching transaction row in the same
transaction.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import exists, select

from wallet_kernel.db.types import zero_money
from wallet_kernel.domain.dtos import AccountInfo
from wallet_kernel.exceptions import AccountAlreadyExistsError, UserNotFoundError
from wallet_kernel.logging_config import get_logger
from wallet_kernel.models.account import Account
from wallet_kernel.services.base import BaseService

logger = get_logger("services.account_repository")


class AccountRepository(BaseService[Account]):
    """Persistence operations on the ``accounts`` table."""

    def _get(self, username: str) -> Account:
        account = self.session.get(Account, username)
        if account is None:
            raise UserNotFoundError(username)
        return account

    def exists(self, username: str) -> bool:
        stmt = select(exists().where(Account.username == username))
        return bool(self.session.execute(stmt).scalar())

    def create(self, username: str) -> AccountInfo:
        """
        Insert a new account with a zero balance.

        Raises:
            AccountAlreadyExistsError: If the username is taken.
        """
        if self.exists(username):
            raise AccountAlreadyExistsError(username)

        account = Account(username=username, balance=zero_money())
        self.session.add(account)
        self.session.flush()

        logger.info("account_created", extra={"account": username})
        return AccountInfo.from_model(account)

    def find(self, username: str) -> AccountInfo | None:
        """Look up an account, returning None if it does not exist."""
        account = self.session.get(Account, username)
        return AccountInfo.from_model(account) if account is not None else None

    def get(self, username: str) -> AccountInfo:
        """
        Look up an account.

        Raises:
            UserNotFoundError: If the account does not exist.
        """
        return AccountInfo.from_model(self._get(username))

    def set_balance(self, username: str, new_balance: Decimal) -> AccountInfo:
        """
        Overwrite an account's balance.

        Raises:
            UserNotFoundError: If the account does not exist.
            ValueError: If new_balance is negative.
        """
        if new_balance < 0:
            raise ValueError(
                f"Balance of {username} cannot go negative (got {new_balance})"
            )
        account = self._get(username)
        previous = account.balance
        account.balance = new_balance
        self.session.flush()

        logger.debug(
            "balance_updated",
            extra={
                "account": username,
                "previous_balance": previous,
                "new_balance": new_balance,
            },
        )
        return AccountInfo.from_model(account)
