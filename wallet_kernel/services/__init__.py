"""
Write-side services.

AccountRepository and TransactionLog only flush; LedgerService is the
orchestrator that commits or rolls back each operation.
"""

from wallet_kernel.services.account_repository import AccountRepository
from wallet_kernel.services.ledger_service import (
    LedgerResult,
    LedgerService,
    LedgerStatus,
)
from wallet_kernel.services.transaction_log import TransactionLog

__all__ = [
    "AccountRepository",
    "LedgerResult",
    "LedgerService",
    "LedgerStatus",
    "TransactionLog",
]
