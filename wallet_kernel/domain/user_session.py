"""
UserSession -- which account, if any, is logged in.

Responsibility:
    Holds the interactive session's authentication state.  The value is
    owned by the caller (the CLI controller) and passed to LedgerService;
    there is no process-wide current user.

Architecture position:
    Kernel > Domain -- pure in-memory state, never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SessionStatus(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


@dataclass
class UserSession:
    """
    Mutable authentication state for one interactive session.

    Guarantees:
        - status is AUTHENTICATED iff current_username is not None.
        - clear() is idempotent.
    """

    current_username: str | None = None

    @property
    def status(self) -> SessionStatus:
        if self.current_username is None:
            return SessionStatus.ANONYMOUS
        return SessionStatus.AUTHENTICATED

    @property
    def is_authenticated(self) -> bool:
        return self.current_username is not None

    def authenticate(self, username: str) -> None:
        self.current_username = username

    def clear(self) -> None:
        self.current_username = None
