"""
Module: wallet_kernel.db.types
Responsibility: Column types and helpers for money.  Every monetary column
    is stored as an integer count of minor units (cents) and surfaces in
    Python as an exact Decimal.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats anywhere in the kernel.  Amounts are Decimal in Python and
      integers on disk, so repeated deposits and withdrawals cannot drift.
    - A value that is not a whole number of minor units is refused at bind
      time instead of being silently rounded.

Failure modes:
    - ValueError from MinorUnits.process_bind_param when a Decimal carries
      more precision than MONEY_DECIMAL_PLACES.
    - TypeError when a float is bound to a money column.
"""

from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import BigInteger
from sqlalchemy.types import TypeDecorator

# Key length for account usernames
USERNAME_MAX_LENGTH = 64

# Minor-unit exponent: 2 -> amounts are whole cents
MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

_QUANTUM = Decimal(1).scaleb(-MONEY_DECIMAL_PLACES)

# Largest single amount accepted from input; keeps balances far inside int64 cents
MAX_AMOUNT = Decimal("999999999999.99")


class MinorUnits(TypeDecorator):
    """
    Decimal money stored as a BigInteger number of minor units.

    Contract:
        Decimal("12.34") is written as 1234 and read back as Decimal("12.34").

    Guarantees:
        - process_bind_param: Decimal/int -> int minor units on INSERT/UPDATE.
        - process_result_value: int -> Decimal quantized to MONEY_DECIMAL_PLACES.
        - cache_ok=True enables SQLAlchemy statement caching.
    """

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return money_to_minor_units(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return money_from_minor_units(int(value))


def money_to_minor_units(value: Decimal | int) -> int:
    """
    Convert a money value to integer minor units.

    Raises:
        TypeError: If value is a float (or any non Decimal/int type).
        ValueError: If value has sub-minor-unit precision.
    """
    if isinstance(value, bool) or not isinstance(value, (Decimal, int)):
        raise TypeError(f"Money must be Decimal or int, got {type(value).__name__}")
    amount = Decimal(value)
    if amount != amount.quantize(_QUANTUM):
        raise ValueError(
            f"Amount {amount} has more than {MONEY_DECIMAL_PLACES} decimal places"
        )
    return int(amount.scaleb(MONEY_DECIMAL_PLACES))


def money_from_minor_units(value: int) -> Decimal:
    """
    Create a Money value from integer minor units.

    Example:
        money_from_minor_units(1050) -> Decimal("10.50")
    """
    return Decimal(value).scaleb(-MONEY_DECIMAL_PLACES).quantize(_QUANTUM)


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to specified decimal places.

    Used for display only.  Ledger arithmetic never rounds: inputs are
    validated to whole minor units, so sums and differences stay exact.
    """
    return value.quantize(Decimal(1).scaleb(-decimal_places), rounding=rounding)


def zero_money() -> Decimal:
    """Zero at the canonical money exponent (Decimal("0.00"))."""
    return Decimal(0).quantize(_QUANTUM)
