"""
MessageBoard -- transient status messages with time-based expiry.

Every user-facing operation leaves a one-line status message.  Messages
disappear after a fixed lifetime regardless of further input; the input
loop calls ``expire()`` once per iteration.  Nothing here touches ledger
state.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from wallet_kernel.domain.clock import Clock, SystemClock

DEFAULT_MESSAGE_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class StatusMessage:
    text: str
    created_at: datetime


class MessageBoard:
    """Ordered list of status messages, oldest first."""

    def __init__(
        self,
        clock: Clock | None = None,
        timeout_seconds: float = DEFAULT_MESSAGE_TIMEOUT_SECONDS,
    ):
        if timeout_seconds <= 0:
            raise ValueError(f"Message timeout must be positive, got {timeout_seconds}")
        self._clock = clock or SystemClock()
        self._timeout = timedelta(seconds=timeout_seconds)
        self._messages: list[StatusMessage] = []

    def add(self, text: str) -> StatusMessage:
        message = StatusMessage(text=text, created_at=self._clock.now())
        self._messages.append(message)
        return message

    def expire(self) -> int:
        """Drop messages older than the timeout. Returns how many were dropped."""
        now = self._clock.now()
        kept = [m for m in self._messages if now - m.created_at < self._timeout]
        dropped = len(self._messages) - len(kept)
        self._messages = kept
        return dropped

    def latest(self) -> StatusMessage | None:
        """The most recent live message, which is the one the UI displays."""
        return self._messages[-1] if self._messages else None

    def messages(self) -> tuple[StatusMessage, ...]:
        return tuple(self._messages)

    def clear(self) -> None:
        self._messages.clear()
