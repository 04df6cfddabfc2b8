"""
Unit tests for amount parsing, username normalization and money display.

Verifies:
- Positive amounts parse to cent-exact Decimals
- Zero, negative, non-numeric, non-finite and float input is rejected
- Sub-cent precision is rejected, trailing zeros are not
- Usernames are stripped and bounded
"""

from decimal import Decimal

import pytest

from wallet_kernel.db.types import MAX_AMOUNT, USERNAME_MAX_LENGTH
from wallet_kernel.domain.values import format_money, normalize_username, parse_amount
from wallet_kernel.exceptions import InvalidAmountError, InvalidUsernameError


class TestParseAmount:
    """Tests for parse_amount."""

    def test_integer_string(self):
        amount = parse_amount("100")
        assert amount == Decimal("100")
        assert str(amount) == "100.00"

    def test_surrounding_whitespace_ignored(self):
        assert parse_amount("  12.5 ") == Decimal("12.50")

    def test_int_and_decimal_accepted(self):
        assert parse_amount(5) == Decimal("5.00")
        assert parse_amount(Decimal("0.01")) == Decimal("0.01")

    def test_trailing_zeros_beyond_cents_accepted(self):
        assert str(parse_amount("1.500")) == "1.50"

    def test_exponent_notation(self):
        assert parse_amount("1E+2") == Decimal("100.00")

    def test_maximum_amount_accepted(self):
        assert parse_amount(str(MAX_AMOUNT)) == MAX_AMOUNT

    @pytest.mark.parametrize(
        "raw",
        ["0", "0.00", "-1", "-0.01", "abc", "", "   ", "NaN", "Infinity", "-Infinity", "1.005", "1e20"],
    )
    def test_invalid_strings_rejected(self, raw):
        with pytest.raises(InvalidAmountError):
            parse_amount(raw)

    def test_float_rejected(self):
        with pytest.raises(InvalidAmountError, match="floating point"):
            parse_amount(1.5)

    def test_bool_rejected(self):
        with pytest.raises(InvalidAmountError):
            parse_amount(True)

    def test_unsupported_type_rejected(self):
        with pytest.raises(InvalidAmountError, match="unsupported type"):
            parse_amount(None)

    def test_error_carries_raw_and_reason(self):
        with pytest.raises(InvalidAmountError) as exc_info:
            parse_amount("-5")
        assert exc_info.value.code == "INVALID_AMOUNT"
        assert exc_info.value.raw == "-5"
        assert "greater than zero" in exc_info.value.reason

    def test_sub_cent_reason(self):
        with pytest.raises(InvalidAmountError) as exc_info:
            parse_amount("0.001")
        assert "decimal places" in exc_info.value.reason


class TestNormalizeUsername:
    """Tests for normalize_username."""

    def test_strips_whitespace(self):
        assert normalize_username("  alice ") == "alice"

    def test_case_preserved(self):
        assert normalize_username("Alice") == "Alice"

    @pytest.mark.parametrize("raw", ["", "   ", "\t\n"])
    def test_empty_rejected(self, raw):
        with pytest.raises(InvalidUsernameError):
            normalize_username(raw)

    def test_max_length(self):
        name = "a" * USERNAME_MAX_LENGTH
        assert normalize_username(name) == name

    def test_too_long_rejected(self):
        with pytest.raises(InvalidUsernameError) as exc_info:
            normalize_username("a" * (USERNAME_MAX_LENGTH + 1))
        assert exc_info.value.code == "INVALID_USERNAME"


class TestFormatMoney:
    """Tests for format_money."""

    def test_thousands_and_cents(self):
        assert format_money(Decimal("1234.5")) == "$1,234.50"

    def test_zero(self):
        assert format_money(Decimal("0")) == "$0.00"

    def test_negative(self):
        assert format_money(Decimal("-3")) == "-$3.00"

    def test_custom_symbol(self):
        assert format_money(Decimal("40"), "€") == "€40.00"
