"""
LedgerService -- the single entry point for every wallet operation.

Responsibility:
    Orchestrates AccountRepository and TransactionLog to implement login,
    account creation, logout, deposit, withdraw and transfer, plus the
    balance and history reads the presentation layer renders.

Architecture position:
    Kernel > Services -- imperative shell, owns transaction boundaries.
    Peer services only flush; this class commits or rolls back.

Operation flow:
    deposit / withdraw / transfer
      1. Require an authenticated session (NotAuthenticated)
      2. transfer only: recipient exists, is not the caller
      3. Parse the amount (InvalidAmount)
      4. Check the balance for debits (InsufficientFunds)
      5. Write balances and log rows in one transaction
      6. Commit, or roll back on any failure

Invariants enforced:
    - Every operation is one all-or-nothing transaction: balances and
      log rows are committed together or not at all.
    - Balances never go negative; the funds check reads the balance
      immediately before the mutation, in the same transaction.
    - Transfers are zero-sum across the two accounts and write exactly
      one transfer_out and one transfer_in record.

Failure modes:
    - Recoverable kernel errors become a LedgerResult with a non-OK
      LedgerStatus and a human-readable message.  Nothing is persisted.
    - SQLAlchemyError is rolled back and re-raised as StorageFailureError,
      the only exception that escapes this service.

Audit relevance:
    Every operation runs under LogContext with a fresh correlation_id,
    the acting username and the operation name, and logs
    ``<operation>_completed`` or ``<operation>_rejected``.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wallet_kernel.db.types import zero_money
from wallet_kernel.domain.clock import Clock, SystemClock
from wallet_kernel.domain.dtos import TransactionEntry
from wallet_kernel.domain.user_session import UserSession
from wallet_kernel.domain.values import (
    AmountInput,
    format_money,
    normalize_username,
    parse_amount,
)
from wallet_kernel.exceptions import (
    AccountAlreadyExistsError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidUsernameError,
    NotAuthenticatedError,
    RecipientNotFoundError,
    SelfTransferError,
    StorageFailureError,
    UserNotFoundError,
    WalletKernelError,
)
from wallet_kernel.logging_config import LogContext, get_logger
from wallet_kernel.models.transaction import TransactionKind
from wallet_kernel.services.account_repository import AccountRepository
from wallet_kernel.services.transaction_log import TransactionLog

logger = get_logger("services.ledger")

DEFAULT_HISTORY_LIMIT = 10


class LedgerStatus(str, Enum):
    """Outcome of a ledger operation."""

    OK = "ok"
    NOT_AUTHENTICATED = "not_authenticated"
    USER_NOT_FOUND = "user_not_found"
    ALREADY_EXISTS = "already_exists"
    INVALID_USERNAME = "invalid_username"
    RECIPIENT_NOT_FOUND = "recipient_not_found"
    SELF_TRANSFER = "self_transfer"
    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_FUNDS = "insufficient_funds"


@dataclass(frozen=True)
class LedgerResult:
    """Result of a ledger operation."""

    status: LedgerStatus
    message: str
    balance: Decimal | None = None
    records: tuple[TransactionEntry, ...] = ()

    @property
    def is_success(self) -> bool:
        return self.status == LedgerStatus.OK


# Recoverable kernel errors and the status each one maps to
_STATUS_BY_ERROR: tuple[tuple[type[WalletKernelError], LedgerStatus], ...] = (
    (NotAuthenticatedError, LedgerStatus.NOT_AUTHENTICATED),
    (RecipientNotFoundError, LedgerStatus.RECIPIENT_NOT_FOUND),
    (UserNotFoundError, LedgerStatus.USER_NOT_FOUND),
    (AccountAlreadyExistsError, LedgerStatus.ALREADY_EXISTS),
    (InvalidUsernameError, LedgerStatus.INVALID_USERNAME),
    (SelfTransferError, LedgerStatus.SELF_TRANSFER),
    (InvalidAmountError, LedgerStatus.INVALID_AMOUNT),
    (InsufficientFundsError, LedgerStatus.INSUFFICIENT_FUNDS),
)

_RECOVERABLE = tuple(error for error, _ in _STATUS_BY_ERROR)


def _status_for(exc: WalletKernelError) -> LedgerStatus:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    raise TypeError(f"No ledger status for {type(exc).__name__}")


def _message_for(status: LedgerStatus, exc: WalletKernelError) -> str:
    if status == LedgerStatus.NOT_AUTHENTICATED:
        return "Please log in first."
    if status == LedgerStatus.USER_NOT_FOUND:
        return "User does not exist. Please try again."
    if status == LedgerStatus.ALREADY_EXISTS:
        return "Username already exists. Please choose a different username."
    if status == LedgerStatus.INVALID_USERNAME:
        return f"Invalid username: {exc.reason}."
    if status == LedgerStatus.RECIPIENT_NOT_FOUND:
        return f"Recipient '{exc.username}' does not exist."
    if status == LedgerStatus.SELF_TRANSFER:
        return "You cannot transfer money to your own account."
    if status == LedgerStatus.INVALID_AMOUNT:
        return "Invalid amount. Please enter a positive number."
    if status == LedgerStatus.INSUFFICIENT_FUNDS:
        return "Insufficient funds."
    return str(exc)


class LedgerService:
    """
    Wallet operations over one SQLAlchemy session.

    Contract:
        Each public mutating method runs one transaction and returns a
        LedgerResult.  Read methods never fail for an anonymous session:
        balance is zero and history is empty.

    Guarantees:
        - Commit on success, rollback on every non-OK status.
        - The caller's UserSession changes only after a successful commit.
        - StorageFailureError is raised, chained to the SQLAlchemy error,
          when the store fails; the transaction has been rolled back.

    Non-goals:
        - No passwords or any other authentication secret.
        - No concurrent multi-user access.

    Usage:
        service = LedgerService(session, UserSession(), clock=clock)
        service.create_account("alice")
        service.deposit("100")
    """

    def __init__(
        self,
        session: Session,
        user_session: UserSession | None = None,
        clock: Clock | None = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        allow_self_transfer: bool = False,
        currency_symbol: str = "$",
    ):
        if history_limit <= 0:
            raise ValueError(f"history_limit must be positive, got {history_limit}")
        self._session = session
        self._user_session = user_session if user_session is not None else UserSession()
        self._clock = clock or SystemClock()
        self._history_limit = history_limit
        self._allow_self_transfer = allow_self_transfer
        self._currency_symbol = currency_symbol
        self._accounts = AccountRepository(session)
        self._log = TransactionLog(session)

    @property
    def user_session(self) -> UserSession:
        return self._user_session

    @property
    def history_limit(self) -> int:
        return self._history_limit

    def _money(self, amount: Decimal) -> str:
        return format_money(amount, self._currency_symbol)

    # ------------------------------------------------------------------
    # Transaction boundary
    # ------------------------------------------------------------------

    def _run(
        self,
        operation: str,
        body: Callable[[], LedgerResult],
        username: str | None = None,
    ) -> LedgerResult:
        """Run ``body`` in one transaction and translate its failures."""
        actor = username or self._user_session.current_username
        with LogContext.bind(
            correlation_id=str(uuid4()),
            username=actor,
            operation=operation,
        ):
            t0 = time.monotonic()
            try:
                try:
                    result = body()
                except _RECOVERABLE as exc:
                    self._session.rollback()
                    status = _status_for(exc)
                    logger.warning(
                        f"{operation}_rejected",
                        extra={
                            "status": status.value,
                            "error_code": exc.code,
                            "reason": str(exc),
                        },
                    )
                    return LedgerResult(status=status, message=_message_for(status, exc))

                self._session.commit()
            except SQLAlchemyError as exc:
                self._session.rollback()
                logger.error(
                    "storage_failure",
                    extra={"failed_operation": operation},
                    exc_info=True,
                )
                raise StorageFailureError(operation, str(exc)) from exc
            except Exception:
                self._session.rollback()
                logger.error(f"{operation}_failed", exc_info=True)
                raise

            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            logger.info(
                f"{operation}_completed",
                extra={
                    "duration_ms": duration_ms,
                    "balance": result.balance,
                    "record_ids": [r.id for r in result.records],
                },
            )
            return result

    def _read(self, operation: str, body: Callable[[], object]):
        try:
            return body()
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.error(
                "storage_failure",
                extra={"failed_operation": operation},
                exc_info=True,
            )
            raise StorageFailureError(operation, str(exc)) from exc

    def _require_user(self, operation: str) -> str:
        username = self._user_session.current_username
        if username is None:
            raise NotAuthenticatedError(operation)
        return username

    # ------------------------------------------------------------------
    # Session operations
    # ------------------------------------------------------------------

    def login(self, username: str) -> LedgerResult:
        """
        Authenticate as an existing account.

        Returns:
            OK, INVALID_USERNAME or USER_NOT_FOUND.
        """
        def body() -> LedgerResult:
            name = normalize_username(username)
            account = self._accounts.find(name)
            if account is None:
                raise UserNotFoundError(name)
            return LedgerResult(
                status=LedgerStatus.OK,
                message="Login successful.",
                balance=account.balance,
            )

        result = self._run("login", body, username=username)
        if result.is_success:
            self._user_session.authenticate(normalize_username(username))
        return result

    def create_account(self, username: str) -> LedgerResult:
        """
        Create an account with a zero balance and log into it.

        Returns:
            OK, INVALID_USERNAME or ALREADY_EXISTS.
        """
        def body() -> LedgerResult:
            account = self._accounts.create(normalize_username(username))
            return LedgerResult(
                status=LedgerStatus.OK,
                message="Account created successfully.",
                balance=account.balance,
            )

        result = self._run("create_account", body, username=username)
        if result.is_success:
            self._user_session.authenticate(normalize_username(username))
        return result

    def logout(self) -> LedgerResult:
        """Return to the anonymous state. Always succeeds; idempotent."""
        previous = self._user_session.current_username
        self._user_session.clear()
        with LogContext.bind(username=previous, operation="logout"):
            logger.info("logout_completed", extra={"was_authenticated": previous is not None})
        return LedgerResult(status=LedgerStatus.OK, message="Logged out successfully.")

    def get_current_user(self) -> str | None:
        return self._user_session.current_username

    # ------------------------------------------------------------------
    # Money movements
    # ------------------------------------------------------------------

    def deposit(self, amount: AmountInput) -> LedgerResult:
        """
        Credit the authenticated account.

        Returns:
            OK, NOT_AUTHENTICATED or INVALID_AMOUNT.
        """
        def body() -> LedgerResult:
            username = self._require_user("deposit")
            value = parse_amount(amount)
            before = self._accounts.get(username).balance
            after = before + value
            self._accounts.set_balance(username, after)
            entry = self._log.append(
                owner=username,
                kind=TransactionKind.DEPOSIT,
                amount=value,
                balance_before=before,
                balance_after=after,
                timestamp=self._clock.now(),
            )
            return LedgerResult(
                status=LedgerStatus.OK,
                message=f"Deposited {self._money(value)}",
                balance=after,
                records=(entry,),
            )

        return self._run("deposit", body)

    def withdraw(self, amount: AmountInput) -> LedgerResult:
        """
        Debit the authenticated account.

        Returns:
            OK, NOT_AUTHENTICATED, INVALID_AMOUNT or INSUFFICIENT_FUNDS.
        """
        def body() -> LedgerResult:
            username = self._require_user("withdraw")
            value = parse_amount(amount)
            before = self._accounts.get(username).balance
            if value > before:
                raise InsufficientFundsError(username, before, value)
            after = before - value
            self._accounts.set_balance(username, after)
            entry = self._log.append(
                owner=username,
                kind=TransactionKind.WITHDRAW,
                amount=value,
                balance_before=before,
                balance_after=after,
                timestamp=self._clock.now(),
            )
            return LedgerResult(
                status=LedgerStatus.OK,
                message=f"Withdrawn {self._money(value)}",
                balance=after,
                records=(entry,),
            )

        return self._run("withdraw", body)

    def transfer(self, recipient: str, amount: AmountInput) -> LedgerResult:
        """
        Move money from the authenticated account to ``recipient``.

        Checks run in order, each short-circuiting: authenticated,
        recipient exists, recipient is not the caller, amount is valid,
        sufficient funds.

        Returns:
            OK, NOT_AUTHENTICATED, RECIPIENT_NOT_FOUND, SELF_TRANSFER,
            INVALID_AMOUNT or INSUFFICIENT_FUNDS.
        """
        def body() -> LedgerResult:
            sender = self._require_user("transfer")
            target = (recipient or "").strip()
            if not target or not self._accounts.exists(target):
                raise RecipientNotFoundError(target)
            if target == sender and not self._allow_self_transfer:
                raise SelfTransferError(sender)
            value = parse_amount(amount)

            sender_before = self._accounts.get(sender).balance
            if value > sender_before:
                raise InsufficientFundsError(sender, sender_before, value)

            now = self._clock.now()
            sender_after = sender_before - value
            self._accounts.set_balance(sender, sender_after)

            # Read after the debit so a self-transfer credits the debited balance
            recipient_before = self._accounts.get(target).balance
            recipient_after = recipient_before + value
            self._accounts.set_balance(target, recipient_after)

            out_entry = self._log.append(
                owner=sender,
                kind=TransactionKind.TRANSFER_OUT,
                amount=value,
                balance_before=sender_before,
                balance_after=sender_after,
                timestamp=now,
                counterparty=target,
            )
            in_entry = self._log.append(
                owner=target,
                kind=TransactionKind.TRANSFER_IN,
                amount=value,
                balance_before=recipient_before,
                balance_after=recipient_after,
                timestamp=now,
                counterparty=sender,
            )
            return LedgerResult(
                status=LedgerStatus.OK,
                message=f"Transferred {self._money(value)} to {target}",
                balance=self._accounts.get(sender).balance,
                records=(out_entry, in_entry),
            )

        return self._run("transfer", body)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_balance(self) -> Decimal:
        """Balance of the authenticated account, zero when anonymous."""
        username = self._user_session.current_username
        if username is None:
            return zero_money()

        def body() -> Decimal:
            account = self._accounts.find(username)
            return account.balance if account is not None else zero_money()

        return self._read("get_balance", body)

    def get_history(self) -> tuple[TransactionEntry, ...]:
        """The ``history_limit`` most recent records, newest first."""
        return self._history("get_history", self._history_limit)

    def get_full_history(self) -> tuple[TransactionEntry, ...]:
        """Every visible record, newest first."""
        return self._history("get_full_history", None)

    def _history(
        self, operation: str, limit: int | None
    ) -> tuple[TransactionEntry, ...]:
        username = self._user_session.current_username
        if username is None:
            return ()
        return self._read(operation, lambda: self._log.history_for(username, limit))
