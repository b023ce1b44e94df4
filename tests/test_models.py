import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models import (
    AccountLockedError,
    ClientAccount,
    InsufficientBalanceError,
    Transaction,
    TransactionType,
    WithdrawalError,
)


class TestTransaction:
    def test_create_deposit(self):
        transaction = Transaction(
            transaction_type=TransactionType.DEPOSIT,
            client_id=1,
            transaction_id=1,
            amount=Decimal("100.0"),
        )
        assert transaction.transaction_type == TransactionType.DEPOSIT
        assert transaction.client_id == 1
        assert transaction.transaction_id == 1
        assert transaction.amount == Decimal("100.0")

    def test_create_dispute_no_amount(self):
        transaction = Transaction(
            transaction_type=TransactionType.DISPUTE,
            client_id=1,
            transaction_id=1,
        )
        assert transaction.amount is None

    def test_is_immutable(self):
        transaction = Transaction(TransactionType.DEPOSIT, 1, 1, Decimal("1"))
        with pytest.raises(AttributeError):
            transaction.amount = Decimal("2")

    def test_id_bounds(self):
        Transaction(TransactionType.DEPOSIT, 0, 0, Decimal("1"))
        Transaction(TransactionType.DEPOSIT, 65535, 4294967295, Decimal("1"))

        with pytest.raises(ValueError):
            Transaction(TransactionType.DEPOSIT, 65536, 1, Decimal("1"))
        with pytest.raises(ValueError):
            Transaction(TransactionType.DEPOSIT, -1, 1, Decimal("1"))
        with pytest.raises(ValueError):
            Transaction(TransactionType.DEPOSIT, 1, 4294967296, Decimal("1"))

    @pytest.mark.parametrize("transaction_type", [TransactionType.DEPOSIT, TransactionType.WITHDRAWAL])
    def test_amount_required(self, transaction_type):
        with pytest.raises(ValueError, match="requires an amount"):
            Transaction(transaction_type, 1, 1)

    @pytest.mark.parametrize(
        "transaction_type",
        [TransactionType.DISPUTE, TransactionType.RESOLVE, TransactionType.CHARGEBACK],
    )
    def test_amount_forbidden(self, transaction_type):
        with pytest.raises(ValueError, match="must not carry an amount"):
            Transaction(transaction_type, 1, 1, Decimal("0"))

    def test_non_finite_amount_rejected(self):
        with pytest.raises(ValueError):
            Transaction(TransactionType.DEPOSIT, 1, 1, Decimal("NaN"))
        with pytest.raises(ValueError):
            Transaction(TransactionType.DEPOSIT, 1, 1, Decimal("Infinity"))


class TestClientAccount:
    def test_default_values(self):
        account = ClientAccount(client_id=1)
        assert account.available == Decimal("0")
        assert account.held == Decimal("0")
        assert account.total == Decimal("0")
        assert account.locked is False

    def test_total_property(self):
        account = ClientAccount(
            client_id=1,
            available=Decimal("100"),
            held=Decimal("50"),
        )
        assert account.total == Decimal("150")

    def test_deposit_then_withdraw_round_trip(self):
        account = ClientAccount(client_id=1, available=Decimal("3.5"))
        account.deposit(Decimal("1.2345"))
        account.withdraw(Decimal("1.2345"))
        assert account.available == Decimal("3.5")
        assert account.total == Decimal("3.5")
        assert account.held == Decimal("0")

    def test_withdraw_exact_balance(self):
        account = ClientAccount(client_id=1, available=Decimal("10"))
        account.withdraw(Decimal("10"))
        assert account.available == Decimal("0")

    def test_withdraw_insufficient(self):
        account = ClientAccount(client_id=1, available=Decimal("10"))
        with pytest.raises(InsufficientBalanceError):
            account.withdraw(Decimal("10.0001"))
        assert account.available == Decimal("10")

    def test_withdraw_locked_checked_before_balance(self):
        account = ClientAccount(client_id=1, available=Decimal("10"), locked=True)
        with pytest.raises(AccountLockedError):
            account.withdraw(Decimal("1000"))
        assert account.available == Decimal("10")

    def test_withdrawal_errors_share_base(self):
        assert issubclass(AccountLockedError, WithdrawalError)
        assert issubclass(InsufficientBalanceError, WithdrawalError)

    def test_hold_can_go_negative(self):
        account = ClientAccount(client_id=1, available=Decimal("5"))
        account.hold(Decimal("8"))
        assert account.available == Decimal("-3")
        assert account.held == Decimal("8")
        assert account.total == Decimal("5")

    def test_release_is_inverse_of_hold(self):
        account = ClientAccount(client_id=1, available=Decimal("5"))
        account.hold(Decimal("2"))
        account.release(Decimal("2"))
        assert account.available == Decimal("5")
        assert account.held == Decimal("0")

    def test_chargeback_locks(self):
        account = ClientAccount(client_id=1, available=Decimal("0"), held=Decimal("7"))
        account.chargeback(Decimal("7"))
        assert account.held == Decimal("0")
        assert account.total == Decimal("0")
        assert account.locked is True

    def test_deposit_allowed_when_locked(self):
        account = ClientAccount(client_id=1, locked=True)
        account.deposit(Decimal("5"))
        assert account.available == Decimal("5")

    def test_snapshot_fixed_scale(self):
        account = ClientAccount(client_id=7, available=Decimal("1.5"), held=Decimal("2"))
        snapshot = account.snapshot()
        assert snapshot.client_id == 7
        assert str(snapshot.available) == "1.5000"
        assert str(snapshot.held) == "2.0000"
        assert str(snapshot.total) == "3.5000"
        assert snapshot.locked is False
