from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Context, Decimal, localcontext
from enum import Enum
from typing import Optional

AMOUNT_SCALE = 4
AMOUNT_QUANTUM = Decimal(1).scaleb(-AMOUNT_SCALE)

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1

# Balances are sums of many parsed amounts, so they outgrow the 28 digits of the
# default context. Parsed amounts themselves still fit in 28.
LEDGER_CONTEXT = Context(prec=50, rounding=ROUND_HALF_UP)


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class MalformedRecordError(ValueError):
    """Input record could not be turned into a Transaction. Aborts the run."""


class LedgerError(Exception):
    """Business-rule failure for a single transaction. The ledger skips it and carries on."""


class WithdrawalError(LedgerError):
    pass


class AccountLockedError(WithdrawalError):
    pass


class InsufficientBalanceError(WithdrawalError):
    pass


class TransactionNotFoundError(LedgerError):
    pass


class TransactionNotDisputedError(LedgerError):
    pass


class TransactionAlreadyDisputedError(LedgerError):
    pass


class TransactionChargedBackError(LedgerError):
    pass


class DuplicateTransactionError(LedgerError):
    pass


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __post_init__(self):
        if not 0 <= self.client_id <= MAX_CLIENT_ID:
            raise ValueError(f"client id {self.client_id} out of range 0..{MAX_CLIENT_ID}")
        if not 0 <= self.transaction_id <= MAX_TRANSACTION_ID:
            raise ValueError(f"tx id {self.transaction_id} out of range 0..{MAX_TRANSACTION_ID}")

        if self.transaction_type.carries_amount:
            if self.amount is None:
                raise ValueError(f"{self.transaction_type.value} requires an amount")
            if not self.amount.is_finite():
                raise ValueError(f"amount {self.amount} is not a finite number")
        elif self.amount is not None:
            raise ValueError(f"{self.transaction_type.value} must not carry an amount")

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True)
class AccountSnapshot:
    client_id: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool


@dataclass
class ClientAccount:
    """
    Balances for one client.
    total is derived, so total == available + held after every mutation.
    """

    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        with localcontext(LEDGER_CONTEXT):
            return self.available + self.held

    def deposit(self, amount: Decimal) -> None:
        self.available += amount

    def withdraw(self, amount: Decimal) -> None:
        """
        Raises:
            AccountLockedError: the account has been charged back (checked first)
            InsufficientBalanceError: available would go below zero
        """
        if self.locked:
            raise AccountLockedError(f"account {self.client_id} is locked")
        if self.available - amount < 0:
            raise InsufficientBalanceError(
                f"account {self.client_id} only has {self.available} available"
            )
        self.available -= amount

    def hold(self, amount: Decimal) -> None:
        # No balance check: available may go negative.
        self.available -= amount
        self.held += amount

    def release(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount

    def chargeback(self, amount: Decimal) -> None:
        self.held -= amount
        self.locked = True

    def snapshot(self) -> AccountSnapshot:
        with localcontext(LEDGER_CONTEXT):
            return AccountSnapshot(
                client_id=self.client_id,
                available=self.available.quantize(AMOUNT_QUANTUM),
                held=self.held.quantize(AMOUNT_QUANTUM),
                total=self.total.quantize(AMOUNT_QUANTUM),
                locked=self.locked,
            )
