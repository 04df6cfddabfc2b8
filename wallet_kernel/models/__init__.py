"""ORM models for the wallet ledger."""

from wallet_kernel.models.account import Account
from wallet_kernel.models.transaction import TransactionKind, TransactionRecord

__all__ = [
    "Account",
    "TransactionKind",
    "TransactionRecord",
]
