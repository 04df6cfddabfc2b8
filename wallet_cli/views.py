"""CLI views: one render function per screen, each returning lines to print."""

from __future__ import annotations

from typing import TYPE_CHECKING

from wallet_kernel.domain.dtos import TransactionEntry
from wallet_kernel.models.transaction import TransactionKind
from wallet_kernel.selectors.ledger_selector import AccountAudit
from wallet_cli.util import fmt_amount

if TYPE_CHECKING:
    from wallet_cli.controller import AppController

W = 60

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S UTC"

_PROMPT_TITLES = {
    "login": "Enter Username",
    "create_account": "Enter New Username",
    "deposit": "Enter Deposit Amount",
    "withdraw": "Enter Withdrawal Amount",
}


def _header(title: str) -> list[str]:
    return ["", "=" * W, f"  {title}".center(W), "=" * W]


def render_main_menu() -> list[str]:
    return _header("E-WALLET") + [
        "  Main Menu",
        "",
        "    1. Login",
        "    2. Create Account",
        "    q. Quit",
    ]


def render_account_menu(username: str, balance, symbol: str = "$") -> list[str]:
    return _header("E-WALLET") + [
        f"  Account: {username}",
        f"  Current Balance: {fmt_amount(balance, symbol)}",
        "",
        "    1. Deposit",
        "    2. Withdraw",
        "    3. Transfer",
        "    4. View Transactions",
        "    5. Logout",
        "    6. Full Statement",
        "    7. Audit Account",
    ]


def render_prompt(title: str, hint: str = "empty line or 'esc' to go back") -> list[str]:
    return _header("E-WALLET") + [f"  {title}", f"  ({hint})"]


def describe_entry(entry: TransactionEntry, symbol: str = "$") -> str:
    """One-line description of a history record from its owner's side."""
    amount = fmt_amount(entry.amount, symbol)
    if entry.kind == TransactionKind.DEPOSIT:
        return f"Deposit: {amount}"
    if entry.kind == TransactionKind.WITHDRAW:
        return f"Withdrawal: {amount}"
    if entry.kind == TransactionKind.TRANSFER_OUT:
        return f"Transfer: {amount} to {entry.counterparty}"
    return f"Received: {amount} from {entry.counterparty}"


def render_transactions(
    entries: tuple[TransactionEntry, ...],
    symbol: str = "$",
    title: str = "Recent Transactions",
) -> list[str]:
    lines = _header(title.upper())
    if not entries:
        lines.append("  No transactions yet.")
        return lines
    for entry in entries:
        lines.append(f"  {describe_entry(entry, symbol)}")
        lines.append(
            f"    Previous Balance: {fmt_amount(entry.balance_before, symbol)}"
            f" | New Balance: {fmt_amount(entry.balance_after, symbol)}"
        )
        lines.append(f"    {entry.timestamp.strftime(TIMESTAMP_FORMAT)}")
    lines.append("")
    lines.append(f"  Showing {len(entries)} record(s), newest first.")
    return lines


def render_audit(audit: AccountAudit, symbol: str = "$") -> list[str]:
    lines = _header("ACCOUNT AUDIT")
    lines.append(f"  Account: {audit.username}")
    lines.append(f"  Records replayed: {audit.record_count}")
    lines.append(f"  Stored balance:   {fmt_amount(audit.stored_balance, symbol)}")
    lines.append(f"  Replayed balance: {fmt_amount(audit.computed_balance, symbol)}")
    if audit.is_consistent:
        lines.append("  Status: CONSISTENT")
    else:
        lines.append(f"  Status: {len(audit.discrepancies)} DISCREPANCIES")
        for problem in audit.discrepancies:
            lines.append(f"    - {problem}")
    return lines


def render_screen(controller: AppController) -> list[str]:
    """Render the current state plus the latest live status message."""
    from wallet_cli.controller import AppState

    state = controller.state
    symbol = controller.currency_symbol
    if state == AppState.MAIN_MENU:
        lines = render_main_menu()
    elif state == AppState.LOGGED_IN:
        lines = render_account_menu(
            controller.current_user or "Unknown",
            controller.service.get_balance(),
            symbol,
        )
    elif state == AppState.TRANSFER:
        if controller.transfer_recipient is None:
            lines = render_prompt("Enter Recipient Username")
        else:
            lines = render_prompt(
                f"Enter Transfer Amount (to {controller.transfer_recipient})"
            )
    elif state == AppState.VIEW_TRANSACTIONS:
        title = "Full Statement" if controller.full_statement else "Recent Transactions"
        lines = render_transactions(controller.history(), symbol, title)
    elif state == AppState.AUDIT and controller.last_audit is not None:
        lines = render_audit(controller.last_audit, symbol)
    else:
        lines = render_prompt(_PROMPT_TITLES.get(state.value, state.value))

    message = controller.messages.latest()
    if message is not None:
        lines += ["", f"  >> {message.text}"]
    return lines
