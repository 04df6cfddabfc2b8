"""
Typed Exception Hierarchy for the Wallet Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the ledger must be able to tell "you typed a bad amount" apart
from "the database file is corrupt" without parsing message strings.

Every error therefore:
  1. Has its own class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, stable in logs)
  3. Carries structured DATA as attributes (username, amount, ...)

Example:
    try:
        repository.get(username)
    except UserNotFoundError as e:
        log.info("login_rejected", extra={"username": e.username, "code": e.code})

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    WalletKernelError (base)
    |
    +-- AuthenticationError
    |   +-- NotAuthenticatedError
    |
    +-- AccountError
    |   +-- UserNotFoundError
    |   +-- AccountAlreadyExistsError
    |   +-- RecipientNotFoundError
    |   +-- InvalidUsernameError
    |
    +-- AmountError
    |   +-- InvalidAmountError
    |   +-- InsufficientFundsError
    |
    +-- TransferError
    |   +-- SelfTransferError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- StorageFailureError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Auth            | NOT_AUTHENTICATED           | Ledger operation without a logged-in user
----------------|-----------------------------|-----------------------------------------
Account         | USER_NOT_FOUND              | Login / lookup of unknown username
                | ACCOUNT_ALREADY_EXISTS      | Create with a username already taken
                | RECIPIENT_NOT_FOUND         | Transfer to unknown username
                | INVALID_USERNAME            | Empty or over-long username
----------------|-----------------------------|-----------------------------------------
Amount          | INVALID_AMOUNT              | Non-numeric, zero, negative, too precise
                | INSUFFICIENT_FUNDS          | Withdraw/transfer larger than balance
----------------|-----------------------------|-----------------------------------------
Transfer        | SELF_TRANSFER               | Sender and recipient are the same
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | UPDATE/DELETE of an append-only row
----------------|-----------------------------|-----------------------------------------
Storage         | STORAGE_FAILURE             | Store unreachable, locked or corrupt

===============================================================================
HANDLING PATTERNS
===============================================================================

Everything except StorageFailureError and ImmutabilityViolationError is
recoverable: the LedgerService translates it into a LedgerResult status
and a user-facing message, and the interactive loop carries on.

StorageFailureError aborts the interactive loop.  Continuing after the
store has failed risks money moving without a matching log entry.

ImmutabilityViolationError means application code tried to rewrite
history.  It is never translated; it propagates to the caller.
"""

from decimal import Decimal


class WalletKernelError(Exception):
    """
    Base exception for all wallet kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "WALLET_KERNEL_ERROR"


# Authentication


class AuthenticationError(WalletKernelError):
    """Base exception for session/authentication errors."""

    code: str = "AUTHENTICATION_ERROR"


class NotAuthenticatedError(AuthenticationError):
    """An operation requiring a logged-in account was called anonymously."""

    code: str = "NOT_AUTHENTICATED"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Operation '{operation}' requires a logged-in account")


# Account-related exceptions


class AccountError(WalletKernelError):
    """Base exception for account-related errors."""

    code: str = "ACCOUNT_ERROR"


class UserNotFoundError(AccountError):
    """Account with given username was not found."""

    code: str = "USER_NOT_FOUND"

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"User not found: {username}")


class AccountAlreadyExistsError(AccountError):
    """Account with given username already exists."""

    code: str = "ACCOUNT_ALREADY_EXISTS"

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Account already exists: {username}")


class RecipientNotFoundError(AccountError):
    """Transfer recipient does not exist."""

    code: str = "RECIPIENT_NOT_FOUND"

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Recipient not found: {username}")


class InvalidUsernameError(AccountError):
    """Username is empty or otherwise unusable as an account key."""

    code: str = "INVALID_USERNAME"

    def __init__(self, username: str, reason: str):
        self.username = username
        self.reason = reason
        super().__init__(f"Invalid username {username!r}: {reason}")


# Amount-related exceptions


class AmountError(WalletKernelError):
    """Base exception for amount-related errors."""

    code: str = "AMOUNT_ERROR"


class InvalidAmountError(AmountError):
    """
    Amount is not a positive, representable money value.

    Covers non-numeric input, zero, negatives, NaN/Infinity, floats and
    amounts with more fractional digits than the configured minor unit.
    """

    code: str = "INVALID_AMOUNT"

    def __init__(self, raw: str, reason: str):
        self.raw = raw
        self.reason = reason
        super().__init__(f"Invalid amount {raw!r}: {reason}")


class InsufficientFundsError(AmountError):
    """Debit would take the account balance below zero."""

    code: str = "INSUFFICIENT_FUNDS"

    def __init__(self, username: str, balance: Decimal, requested: Decimal):
        self.username = username
        self.balance = str(balance)
        self.requested = str(requested)
        super().__init__(
            f"Insufficient funds for {username}: balance={balance}, requested={requested}"
        )


# Transfer-related exceptions


class TransferError(WalletKernelError):
    """Base exception for transfer-specific errors."""

    code: str = "TRANSFER_ERROR"


class SelfTransferError(TransferError):
    """Sender and recipient of a transfer are the same account."""

    code: str = "SELF_TRANSFER"

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Cannot transfer from {username} to itself")


# Immutability-related exceptions


class ImmutabilityError(WalletKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Transaction rows are append-only; accounts are never deleted and
    their username never changes.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Storage


class StorageFailureError(WalletKernelError):
    """
    The underlying store failed mid-operation.

    The operation's transaction has been rolled back.  This is the only
    kernel error that should terminate the interactive loop.
    """

    code: str = "STORAGE_FAILURE"

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Storage failure during {operation}: {reason}")
