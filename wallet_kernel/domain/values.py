"""
Values -- validation and formatting of raw user input.

Responsibility:
    Turns what the user typed into kernel values: ``parse_amount`` for money
    and ``normalize_username`` for account keys.  Also owns the single money
    display format.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Amounts are strictly positive, finite, and whole minor units.
    - Floats are refused outright; callers pass str, int or Decimal.
    - Usernames are stripped, non-empty, and fit the accounts key column.

Failure modes:
    - InvalidAmountError for anything that is not a valid positive amount.
    - InvalidUsernameError for empty or over-long usernames.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from wallet_kernel.db.types import (
    MAX_AMOUNT,
    MONEY_DECIMAL_PLACES,
    USERNAME_MAX_LENGTH,
    round_money,
)
from wallet_kernel.exceptions import InvalidAmountError, InvalidUsernameError

AmountInput = Decimal | int | str


def parse_amount(raw: AmountInput) -> Decimal:
    """
    Parse and validate a positive money amount.

    Preconditions: raw is a str (user input), int or Decimal.
    Postconditions: Returns a Decimal > 0 quantized to MONEY_DECIMAL_PLACES.

    Raises:
        InvalidAmountError: non-numeric, float, NaN/Infinity, zero, negative,
            or more fractional digits than the minor unit allows.
    """
    if isinstance(raw, bool) or isinstance(raw, float):
        raise InvalidAmountError(repr(raw), "floating point amounts are not accepted")

    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            raise InvalidAmountError(raw, "amount is empty")
        try:
            amount = Decimal(text)
        except InvalidOperation:
            raise InvalidAmountError(raw, "not a number")
    elif isinstance(raw, (int, Decimal)):
        amount = Decimal(raw)
    else:
        raise InvalidAmountError(repr(raw), f"unsupported type {type(raw).__name__}")

    if not amount.is_finite():
        raise InvalidAmountError(str(raw), "amount must be finite")
    if amount <= 0:
        raise InvalidAmountError(str(raw), "amount must be greater than zero")
    if amount > MAX_AMOUNT:
        raise InvalidAmountError(str(raw), f"amount must not exceed {MAX_AMOUNT}")

    exponent = amount.as_tuple().exponent
    if isinstance(exponent, int) and exponent < -MONEY_DECIMAL_PLACES:
        # Trailing zeros beyond the minor unit ("1.500") are harmless
        if amount != round_money(amount):
            raise InvalidAmountError(
                str(raw),
                f"at most {MONEY_DECIMAL_PLACES} decimal places are allowed",
            )

    return round_money(amount)


def normalize_username(raw: str) -> str:
    """
    Strip and validate a username.

    Raises:
        InvalidUsernameError: If the result is empty or too long.
    """
    username = (raw or "").strip()
    if not username:
        raise InvalidUsernameError(raw, "username is empty")
    if len(username) > USERNAME_MAX_LENGTH:
        raise InvalidUsernameError(
            raw, f"username is longer than {USERNAME_MAX_LENGTH} characters"
        )
    return username


def format_money(amount: Decimal, symbol: str = "$") -> str:
    """Format an amount for display, e.g. ``$1,234.50``."""
    value = round_money(amount)
    if value < 0:
        return f"-{symbol}{-value:,.{MONEY_DECIMAL_PLACES}f}"
    return f"{symbol}{value:,.{MONEY_DECIMAL_PLACES}f}"
