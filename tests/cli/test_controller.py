"""
Tests for the AppController state machine.

Covers:
- Main menu and account menu dispatch
- Prompt screens: escape, retry on invalid amount, return on completion
- The two-step transfer prompt
- Audit and statement screens
"""

from decimal import Decimal

import pytest

from wallet_cli.controller import AppController, AppState
from wallet_kernel.exceptions import StorageFailureError


@pytest.fixture
def controller(ledger, message_board, selector) -> AppController:
    return AppController(ledger, message_board, selector=selector)


@pytest.fixture
def logged_in(funded_alice, message_board, selector) -> AppController:
    """Controller on the account menu as alice ($100.00), with bob present."""
    ctrl = AppController(funded_alice, message_board, selector=selector)
    ctrl.state = AppState.LOGGED_IN
    return ctrl


def _latest(ctrl: AppController) -> str | None:
    message = ctrl.messages.latest()
    return message.text if message else None


def _feed(ctrl: AppController, *lines: str) -> None:
    for line in lines:
        assert ctrl.handle(line)


class TestMainMenu:
    @pytest.mark.parametrize(
        "choice, state",
        [("1", AppState.LOGIN), ("2", AppState.CREATE_ACCOUNT)],
    )
    def test_choices(self, controller, choice, state):
        assert controller.handle(choice)
        assert controller.state == state

    @pytest.mark.parametrize("choice", ["q", "Q"])
    def test_quit(self, controller, choice):
        assert controller.handle(choice) is False

    def test_unknown_choice(self, controller):
        controller.handle("9")
        assert controller.state == AppState.MAIN_MENU
        assert _latest(controller) == "Unknown choice '9'. Pick 1, 2 or q."

    def test_empty_line_is_ignored(self, controller):
        controller.handle("")
        assert controller.state == AppState.MAIN_MENU
        assert _latest(controller) is None


class TestLoginAndCreate:
    def test_create_account_logs_in(self, controller):
        _feed(controller, "2", "alice")
        assert controller.state == AppState.LOGGED_IN
        assert controller.current_user == "alice"
        assert _latest(controller) == "Account created successfully."

    def test_login_unknown_stays_on_prompt(self, controller):
        _feed(controller, "1", "ghost")
        assert controller.state == AppState.LOGIN
        assert _latest(controller) == "User does not exist. Please try again."

    @pytest.mark.parametrize("escape", ["", "esc", "ESC"])
    def test_escape_returns_to_main_menu(self, controller, escape):
        _feed(controller, "1", escape)
        assert controller.state == AppState.MAIN_MENU

    def test_duplicate_account(self, controller, ledger):
        ledger.create_account("alice")
        ledger.logout()
        _feed(controller, "2", "alice")
        assert controller.state == AppState.CREATE_ACCOUNT
        assert _latest(controller).startswith("Username already exists")


class TestAccountMenu:
    def test_deposit(self, logged_in):
        _feed(logged_in, "1", "50")
        assert logged_in.state == AppState.LOGGED_IN
        assert _latest(logged_in) == "Deposited $50.00"
        assert logged_in.service.get_balance() == Decimal("150.00")

    def test_invalid_deposit_stays_on_prompt(self, logged_in):
        _feed(logged_in, "1", "abc")
        assert logged_in.state == AppState.DEPOSIT
        assert _latest(logged_in) == "Invalid amount. Please enter a positive number."
        _feed(logged_in, "5")
        assert logged_in.state == AppState.LOGGED_IN

    def test_insufficient_withdraw_returns_to_menu(self, logged_in):
        _feed(logged_in, "2", "500")
        assert logged_in.state == AppState.LOGGED_IN
        assert _latest(logged_in) == "Insufficient funds."

    def test_escape_from_withdraw(self, logged_in):
        _feed(logged_in, "2", "esc")
        assert logged_in.state == AppState.LOGGED_IN
        assert logged_in.service.get_balance() == Decimal("100.00")

    def test_logout(self, logged_in):
        _feed(logged_in, "5")
        assert logged_in.state == AppState.MAIN_MENU
        assert logged_in.current_user is None
        assert _latest(logged_in) == "Logged out successfully."

    def test_unknown_choice(self, logged_in):
        _feed(logged_in, "x")
        assert logged_in.state == AppState.LOGGED_IN
        assert _latest(logged_in) == "Unknown choice 'x'. Pick 1-7."


class TestTransferPrompt:
    def test_two_steps(self, logged_in):
        _feed(logged_in, "3")
        assert logged_in.state == AppState.TRANSFER
        assert logged_in.transfer_recipient is None

        _feed(logged_in, "bob")
        assert logged_in.transfer_recipient == "bob"

        _feed(logged_in, "40")
        assert logged_in.state == AppState.LOGGED_IN
        assert logged_in.transfer_recipient is None
        assert _latest(logged_in) == "Transferred $40.00 to bob"
        assert logged_in.service.get_balance() == Decimal("60.00")

    def test_invalid_amount_keeps_recipient(self, logged_in):
        _feed(logged_in, "3", "bob", "abc")
        assert logged_in.state == AppState.TRANSFER
        assert logged_in.transfer_recipient == "bob"

        _feed(logged_in, "10")
        assert logged_in.state == AppState.LOGGED_IN
        assert logged_in.service.get_balance() == Decimal("90.00")

    def test_unknown_recipient_reported_after_amount(self, logged_in):
        _feed(logged_in, "3", "carol", "10")
        assert logged_in.state == AppState.LOGGED_IN
        assert logged_in.transfer_recipient is None
        assert _latest(logged_in) == "Recipient 'carol' does not exist."

    def test_escape_clears_recipient(self, logged_in):
        _feed(logged_in, "3", "bob", "")
        assert logged_in.state == AppState.LOGGED_IN
        assert logged_in.transfer_recipient is None


class TestViewScreens:
    def test_recent_transactions(self, logged_in):
        _feed(logged_in, "4")
        assert logged_in.state == AppState.VIEW_TRANSACTIONS
        assert not logged_in.full_statement
        assert len(logged_in.history()) == 1
        _feed(logged_in, "anything")
        assert logged_in.state == AppState.LOGGED_IN

    def test_full_statement(self, logged_in):
        for _ in range(11):
            logged_in.service.deposit("1")
        _feed(logged_in, "6")
        assert logged_in.full_statement
        assert len(logged_in.history()) == 12

    def test_audit(self, logged_in):
        _feed(logged_in, "7")
        assert logged_in.state == AppState.AUDIT
        assert logged_in.last_audit.is_consistent
        _feed(logged_in, "")
        assert logged_in.state == AppState.LOGGED_IN
        assert logged_in.last_audit is None

    def test_audit_without_selector(self, funded_alice, message_board):
        ctrl = AppController(funded_alice, message_board)
        ctrl.state = AppState.LOGGED_IN
        _feed(ctrl, "7")
        assert ctrl.state == AppState.LOGGED_IN
        assert _latest(ctrl) == "Audit is not available."


def test_prompts(controller):
    assert controller.prompt() == "  Pick: "
    _feed(controller, "1")
    assert controller.prompt() == "  > "


def test_storage_failure_is_not_caught(logged_in, monkeypatch):
    def failing_deposit(amount):
        raise StorageFailureError("deposit", "disk I/O error")

    monkeypatch.setattr(logged_in.service, "deposit", failing_deposit)
    logged_in.handle("1")
    with pytest.raises(StorageFailureError):
        logged_in.handle("10")
