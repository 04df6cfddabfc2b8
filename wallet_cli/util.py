"""CLI utilities: amount formatting, escape detection."""

from decimal import Decimal

from wallet_kernel.domain.values import format_money

ESCAPE_WORDS = frozenset({"", "esc"})


def fmt_amount(v: Decimal, symbol: str = "$") -> str:
    """Format amount for display (e.g. $1,234.50)."""
    return format_money(Decimal(str(v)), symbol)


def is_escape(line: str) -> bool:
    """An empty line or 'esc' backs out of a prompt screen."""
    return line.strip().lower() in ESCAPE_WORDS
