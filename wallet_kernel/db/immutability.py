"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

The transaction log is the ledger's paper trail.  If a row could be edited
or removed, the balance_before/balance_after snapshots would stop proving
anything.  Accounts are keyed by username and referenced by every log row,
so they are never deleted and never renamed.

SQLAlchemy fires mapper events before UPDATE/DELETE statements reach the
database.  We register listeners that reject forbidden changes:

    session.flush()
         |
         v
    [before_update event] --> _check_*_immutability() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _check_*_delete() ---------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

The exception aborts the flush; the caller's transaction is rolled back.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity              | Rule
--------------------|-------------------------------------------------------
TransactionRecord   | Never updated, never deleted
Account             | Never deleted; username never changes (balance may)

===============================================================================
USAGE
===============================================================================

Called once at start-up, after models are imported:

    from wallet_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event, inspect

from wallet_kernel.exceptions import ImmutabilityViolationError
from wallet_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _blocked(entity_type: str, entity_id: str, operation: str, reason: str):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": entity_id,
            "operation": operation,
        },
    )
    return ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=entity_id,
        reason=reason,
    )


# =============================================================================
# TransactionRecord: append-only
# =============================================================================


def _check_transaction_immutability(mapper, connection, target):
    """Prevent any update to a TransactionRecord."""
    raise _blocked(
        "TransactionRecord",
        str(target.id),
        "UPDATE",
        "Transaction records are append-only and cannot be modified",
    )


def _check_transaction_delete(mapper, connection, target):
    """Prevent deletion of a TransactionRecord."""
    raise _blocked(
        "TransactionRecord",
        str(target.id),
        "DELETE",
        "Transaction records cannot be deleted",
    )


# =============================================================================
# Account: never deleted, username frozen
# =============================================================================


def _check_account_immutability(mapper, connection, target):
    """Allow balance changes; reject any change of the username key."""
    history = inspect(target).attrs.username.history
    if history.has_changes() and history.deleted:
        raise _blocked(
            "Account",
            str(history.deleted[0]),
            "UPDATE",
            "Account username cannot be changed",
        )


def _check_account_delete(mapper, connection, target):
    """Prevent deletion of an Account."""
    raise _blocked(
        "Account",
        target.username,
        "DELETE",
        "Accounts cannot be deleted",
    )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Idempotent: registering twice does not install duplicate listeners.
    """
    from wallet_kernel.models.account import Account
    from wallet_kernel.models.transaction import TransactionRecord

    for target, event_name, fn in _listeners(Account, TransactionRecord):
        if not event.contains(target, event_name, fn):
            event.listen(target, event_name, fn)


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if it was never registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests where you need to intentionally
    violate immutability rules to verify detection.
    """
    from wallet_kernel.models.account import Account
    from wallet_kernel.models.transaction import TransactionRecord

    for target, event_name, fn in _listeners(Account, TransactionRecord):
        _safe_remove_listener(target, event_name, fn)


def _listeners(account_cls, transaction_cls):
    return (
        (transaction_cls, "before_update", _check_transaction_immutability),
        (transaction_cls, "before_delete", _check_transaction_delete),
        (account_cls, "before_update", _check_account_immutability),
        (account_cls, "before_delete", _check_account_delete),
    )
