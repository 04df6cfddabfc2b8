"""
Interactive e-wallet CLI.

Log in or create an account, deposit, withdraw, transfer and review
history from a line-oriented menu.  Every operation is committed
immediately.

Entry point: ``ewallet`` or ``python -m wallet_cli``
"""

from wallet_cli.main import main

__all__ = ["main"]
