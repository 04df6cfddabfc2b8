"""
AppController -- the interactive state machine.

One submitted line is one key press: menu screens read a single choice,
prompt screens read a whole value.  Every ledger call leaves its status
message on the MessageBoard.
"""

from __future__ import annotations

from enum import Enum

from sqlalchemy.exc import SQLAlchemyError

from wallet_kernel.domain.dtos import TransactionEntry
from wallet_kernel.domain.messages import MessageBoard
from wallet_kernel.exceptions import StorageFailureError
from wallet_kernel.logging_config import get_logger
from wallet_kernel.selectors.ledger_selector import AccountAudit, LedgerSelector
from wallet_kernel.services.ledger_service import LedgerService, LedgerStatus
from wallet_cli.util import is_escape

logger = get_logger("cli.controller")


class AppState(str, Enum):
    MAIN_MENU = "main_menu"
    LOGIN = "login"
    CREATE_ACCOUNT = "create_account"
    LOGGED_IN = "logged_in"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    TRANSFER = "transfer"
    VIEW_TRANSACTIONS = "view_transactions"
    AUDIT = "audit"


# States that read a free-text value rather than a menu choice
PROMPT_STATES = frozenset(
    {
        AppState.LOGIN,
        AppState.CREATE_ACCOUNT,
        AppState.DEPOSIT,
        AppState.WITHDRAW,
        AppState.TRANSFER,
    }
)


class AppController:
    """
    Drives LedgerService from line input.

    ``handle(line)`` returns False when the user asked to quit.
    StorageFailureError is never caught here; it ends the loop.
    """

    def __init__(
        self,
        service: LedgerService,
        messages: MessageBoard,
        selector: LedgerSelector | None = None,
        currency_symbol: str = "$",
    ):
        self.service = service
        self.messages = messages
        self.selector = selector
        self.currency_symbol = currency_symbol
        self.state = AppState.MAIN_MENU
        self.transfer_recipient: str | None = None
        self.full_statement = False
        self.last_audit: AccountAudit | None = None

    @property
    def current_user(self) -> str | None:
        return self.service.get_current_user()

    def history(self) -> tuple[TransactionEntry, ...]:
        if self.full_statement:
            return self.service.get_full_history()
        return self.service.get_history()

    def handle(self, line: str) -> bool:
        text = line.strip()
        handler = getattr(self, f"_on_{self.state.value}")
        previous = self.state
        keep_running = handler(text)
        if self.state != previous:
            logger.debug(
                "state_changed",
                extra={"from_state": previous.value, "to_state": self.state.value},
            )
        return keep_running

    # ------------------------------------------------------------------
    # Menus
    # ------------------------------------------------------------------

    def _on_main_menu(self, text: str) -> bool:
        choice = text.lower()
        if choice == "1":
            self.state = AppState.LOGIN
        elif choice == "2":
            self.state = AppState.CREATE_ACCOUNT
        elif choice == "q":
            return False
        elif choice:
            self.messages.add(f"Unknown choice '{text}'. Pick 1, 2 or q.")
        return True

    def _on_logged_in(self, text: str) -> bool:
        if text == "1":
            self.state = AppState.DEPOSIT
        elif text == "2":
            self.state = AppState.WITHDRAW
        elif text == "3":
            self.transfer_recipient = None
            self.state = AppState.TRANSFER
        elif text == "4":
            self.full_statement = False
            self.state = AppState.VIEW_TRANSACTIONS
        elif text == "5":
            result = self.service.logout()
            self.messages.add(result.message)
            self.state = AppState.MAIN_MENU
        elif text == "6":
            self.full_statement = True
            self.state = AppState.VIEW_TRANSACTIONS
        elif text == "7":
            self._open_audit()
        elif text:
            self.messages.add(f"Unknown choice '{text}'. Pick 1-7.")
        return True

    def _open_audit(self) -> None:
        username = self.current_user
        if self.selector is None or username is None:
            self.messages.add("Audit is not available.")
            return
        try:
            self.last_audit = self.selector.verify_account(username)
        except SQLAlchemyError as exc:
            raise StorageFailureError("verify_account", str(exc)) from exc
        self.state = AppState.AUDIT

    def _on_view_transactions(self, text: str) -> bool:
        self.state = AppState.LOGGED_IN
        return True

    def _on_audit(self, text: str) -> bool:
        self.last_audit = None
        self.state = AppState.LOGGED_IN
        return True

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------

    def _on_login(self, text: str) -> bool:
        if is_escape(text):
            self.state = AppState.MAIN_MENU
            return True
        result = self.service.login(text)
        self.messages.add(result.message)
        if result.is_success:
            self.state = AppState.LOGGED_IN
        return True

    def _on_create_account(self, text: str) -> bool:
        if is_escape(text):
            self.state = AppState.MAIN_MENU
            return True
        result = self.service.create_account(text)
        self.messages.add(result.message)
        if result.is_success:
            self.state = AppState.LOGGED_IN
        return True

    def _on_deposit(self, text: str) -> bool:
        if is_escape(text):
            self.state = AppState.LOGGED_IN
            return True
        result = self.service.deposit(text)
        self.messages.add(result.message)
        if result.status != LedgerStatus.INVALID_AMOUNT:
            self.state = AppState.LOGGED_IN
        return True

    def _on_withdraw(self, text: str) -> bool:
        if is_escape(text):
            self.state = AppState.LOGGED_IN
            return True
        result = self.service.withdraw(text)
        self.messages.add(result.message)
        if result.status != LedgerStatus.INVALID_AMOUNT:
            self.state = AppState.LOGGED_IN
        return True

    def _on_transfer(self, text: str) -> bool:
        if is_escape(text):
            self.transfer_recipient = None
            self.state = AppState.LOGGED_IN
            return True
        if self.transfer_recipient is None:
            self.transfer_recipient = text
            return True

        result = self.service.transfer(self.transfer_recipient, text)
        self.messages.add(result.message)
        # A bad amount keeps the recipient and asks again
        if result.status != LedgerStatus.INVALID_AMOUNT:
            self.transfer_recipient = None
            self.state = AppState.LOGGED_IN
        return True

    def prompt(self) -> str:
        if self.state in PROMPT_STATES:
            return "  > "
        if self.state in (AppState.VIEW_TRANSACTIONS, AppState.AUDIT):
            return "  Press Enter to go back: "
        return "  Pick: "
