"""Pure domain layer: clock, DTOs, input values, session state, status messages."""

from wallet_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from wallet_kernel.domain.dtos import AccountInfo, TransactionEntry
from wallet_kernel.domain.messages import MessageBoard, StatusMessage
from wallet_kernel.domain.user_session import SessionStatus, UserSession
from wallet_kernel.domain.values import format_money, normalize_username, parse_amount

__all__ = [
    "AccountInfo",
    "Clock",
    "DeterministicClock",
    "MessageBoard",
    "SessionStatus",
    "StatusMessage",
    "SystemClock",
    "TransactionEntry",
    "UserSession",
    "format_money",
    "normalize_username",
    "parse_amount",
]
