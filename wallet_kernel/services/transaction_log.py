"""
TransactionLog -- append-only writer and history query for ``transactions``.

Responsibility:
    ``append`` inserts exactly one immutable row per call.  ``history_for``
    reconstructs what an account's owner should see: every row filed under
    the account, except transfer_in rows the account sent to itself.  Rows
    that carry both the sender and recipient columns (the older layout) are
    read the same way.

Architecture position:
    Kernel > Services -- flush-only, the caller owns the transaction.

Invariants enforced:
    - A transfer between two accounts shows up exactly once on each side:
      transfer_out for the sender, transfer_in for the recipient.
    - A transfer_in row whose sender is the viewing account is never shown
      to that account, so a self-transfer is not read back as a deposit.
    - Newest first, ordered by the monotonic row id.

Failure modes:
    - ValueError from TransactionEntry if the row about to be written is
      internally inconsistent (nothing is inserted in that case).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import or_, select

from wallet_kernel.domain.dtos import TransactionEntry
from wallet_kernel.logging_config import get_logger
from wallet_kernel.models.transaction import TransactionKind, TransactionRecord
from wallet_kernel.services.base import BaseService

logger = get_logger("services.transaction_log")


class TransactionLog(BaseService[TransactionRecord]):
    """Append-only access to the ``transactions`` table."""

    def append(
        self,
        owner: str,
        kind: TransactionKind,
        amount: Decimal,
        balance_before: Decimal,
        balance_after: Decimal,
        timestamp: datetime,
        counterparty: str | None = None,
    ) -> TransactionEntry:
        """
        Insert one record filed under ``owner``.

        The counterparty lands in ``recipient`` for transfer_out and in
        ``sender`` for transfer_in.

        Returns:
            The written record, with its assigned id.
        """
        # Validate before touching the session
        TransactionEntry(
            id=0,
            owner=owner,
            kind=kind,
            amount=amount,
            balance_before=balance_before,
            balance_after=balance_after,
            timestamp=timestamp,
            counterparty=counterparty,
        )

        record = TransactionRecord(
            username=owner,
            transaction_type=kind.value,
            amount=amount,
            recipient=counterparty if kind == TransactionKind.TRANSFER_OUT else None,
            sender=counterparty if kind == TransactionKind.TRANSFER_IN else None,
            previous_balance=balance_before,
            new_balance=balance_after,
            timestamp=timestamp,
        )
        self.session.add(record)
        self.session.flush()

        logger.debug(
            "transaction_appended",
            extra={
                "transaction_id": record.id,
                "owner": owner,
                "kind": kind.value,
                "amount": amount,
            },
        )
        return TransactionEntry.from_model(record)

    def history_for(
        self, username: str, limit: int | None = None
    ) -> tuple[TransactionEntry, ...]:
        """
        Visible history of ``username``, newest first.

        Args:
            username: Account whose history to reconstruct.
            limit: Maximum number of records, or None for all of them.
        """
        if limit is not None and limit <= 0:
            raise ValueError(f"History limit must be positive, got {limit}")

        not_own_transfer_in = or_(
            TransactionRecord.transaction_type != TransactionKind.TRANSFER_IN.value,
            TransactionRecord.sender.is_(None),
            TransactionRecord.sender != username,
        )
        stmt = (
            select(TransactionRecord)
            .where(TransactionRecord.username == username)
            .where(not_own_transfer_in)
            .order_by(TransactionRecord.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        rows = self.session.execute(stmt).scalars().all()
        return tuple(TransactionEntry.from_model(row) for row in rows)

