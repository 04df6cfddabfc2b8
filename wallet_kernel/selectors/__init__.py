"""Read-only audit queries."""

from wallet_kernel.selectors.ledger_selector import AccountAudit, LedgerSelector

__all__ = ["AccountAudit", "LedgerSelector"]
