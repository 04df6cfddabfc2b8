"""
Tests for AccountRepository.

Covers:
- create(): zero balance, duplicate usernames
- find() / get() / exists()
- set_balance(): exact round trip through integer cents, negative guard
"""

from decimal import Decimal

import pytest

from wallet_kernel.domain.dtos import AccountInfo
from wallet_kernel.exceptions import AccountAlreadyExistsError, UserNotFoundError


class TestCreate:
    def test_new_account_has_zero_balance(self, accounts):
        info = accounts.create("alice")
        assert info == AccountInfo(username="alice", balance=Decimal("0"))
        assert str(info.balance) == "0.00"

    def test_duplicate_rejected(self, accounts):
        accounts.create("alice")
        with pytest.raises(AccountAlreadyExistsError) as exc_info:
            accounts.create("alice")
        assert exc_info.value.username == "alice"
        assert exc_info.value.code == "ACCOUNT_ALREADY_EXISTS"

    def test_usernames_are_case_sensitive(self, accounts):
        accounts.create("alice")
        accounts.create("Alice")
        assert accounts.exists("alice")
        assert accounts.exists("Alice")


class TestLookup:
    def test_find_missing_returns_none(self, accounts):
        assert accounts.find("nobody") is None

    def test_get_missing_raises(self, accounts):
        with pytest.raises(UserNotFoundError):
            accounts.get("nobody")

    def test_exists(self, accounts):
        assert not accounts.exists("alice")
        accounts.create("alice")
        assert accounts.exists("alice")


class TestSetBalance:
    def test_round_trip_is_exact(self, accounts, session):
        accounts.create("alice")
        accounts.set_balance("alice", Decimal("12.34"))
        session.commit()
        session.expire_all()

        balance = accounts.get("alice").balance
        assert balance == Decimal("12.34")
        assert str(balance) == "12.34"

    def test_repeated_cents_do_not_drift(self, accounts, session):
        accounts.create("alice")
        balance = Decimal("0")
        for _ in range(1000):
            balance += Decimal("0.10")
            accounts.set_balance("alice", balance)
        session.commit()
        session.expire_all()
        assert accounts.get("alice").balance == Decimal("100.00")

    def test_negative_rejected(self, accounts):
        accounts.create("alice")
        with pytest.raises(ValueError):
            accounts.set_balance("alice", Decimal("-0.01"))
        assert accounts.get("alice").balance == Decimal("0")

    def test_missing_account(self, accounts):
        with pytest.raises(UserNotFoundError):
            accounts.set_balance("nobody", Decimal("1"))
