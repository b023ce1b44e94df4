import logging
from dataclasses import dataclass
from decimal import localcontext
from typing import Dict, List, Optional

from models import (
    LEDGER_CONTEXT,
    AccountSnapshot,
    ClientAccount,
    DuplicateTransactionError,
    LedgerError,
    Transaction,
    TransactionAlreadyDisputedError,
    TransactionChargedBackError,
    TransactionNotDisputedError,
    TransactionNotFoundError,
    TransactionType,
)
from state_manager import StateManager

logger = logging.getLogger(__name__)


@dataclass
class LedgerStats:
    applied: int = 0
    rejected: int = 0


class Ledger:
    """
    Applies transactions to client accounts one at a time, in input order.

    Per transaction id the lifecycle is
    applied -> disputed -> (resolved back to applied | charged back, terminal).
    Business-rule failures are logged and the transaction is skipped with
    state unchanged; nothing is returned to the caller.
    """

    def __init__(self):
        self._state = StateManager()
        self._stats = LedgerStats()

    @property
    def stats(self) -> LedgerStats:
        return self._stats

    def apply(self, transaction: Transaction) -> None:
        logger.debug(f"Applying {transaction}")
        try:
            with localcontext(LEDGER_CONTEXT):
                self._dispatch(transaction)
        except LedgerError as e:
            self._stats.rejected += 1
            logger.warning(
                f"Cannot {transaction.transaction_type.value} tx {transaction.transaction_id} "
                f"for client {transaction.client_id}: {e}"
            )
            return

        self._stats.applied += 1

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self._state.get_account(client_id)

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        return self._state.get_all_accounts()

    def snapshots(self) -> List[AccountSnapshot]:
        accounts = self._state.get_all_accounts()
        return [accounts[client_id].snapshot() for client_id in sorted(accounts)]

    def is_disputed(self, transaction_id: int) -> bool:
        return self._state.is_transaction_disputed(transaction_id)

    def _dispatch(self, transaction: Transaction) -> None:
        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                self._handle_deposit(transaction)
            case TransactionType.WITHDRAWAL:
                self._handle_withdrawal(transaction)
            case TransactionType.DISPUTE:
                self._handle_dispute(transaction)
            case TransactionType.RESOLVE:
                self._handle_resolve(transaction)
            case TransactionType.CHARGEBACK:
                self._handle_chargeback(transaction)

    def _handle_deposit(self, transaction: Transaction) -> None:
        self._check_unique(transaction)
        account = self._state.get_or_create_account(transaction.client_id)
        account.deposit(transaction.amount)
        self._state.store_transaction(transaction)

    def _handle_withdrawal(self, transaction: Transaction) -> None:
        self._check_unique(transaction)
        account = self._state.get_or_create_account(transaction.client_id)
        account.withdraw(transaction.amount)
        # Only successful withdrawals are recorded, so failed ones cannot be disputed.
        self._state.store_transaction(transaction)

    def _handle_dispute(self, transaction: Transaction) -> None:
        original = self._find_original(transaction)

        if self._state.is_transaction_charged_back(transaction.transaction_id):
            raise TransactionChargedBackError("transaction was already charged back")
        if self._state.is_transaction_disputed(transaction.transaction_id):
            raise TransactionAlreadyDisputedError("transaction is already disputed")

        # Withdrawals are held exactly like deposits, which drives available further negative.
        self._owner_account(original).hold(original.amount)
        self._state.mark_transaction_disputed(transaction.transaction_id)

    def _handle_resolve(self, transaction: Transaction) -> None:
        original = self._find_disputed_original(transaction)
        self._owner_account(original).release(original.amount)
        self._state.clear_transaction_dispute(transaction.transaction_id)

    def _handle_chargeback(self, transaction: Transaction) -> None:
        original = self._find_disputed_original(transaction)
        self._owner_account(original).chargeback(original.amount)
        self._state.clear_transaction_dispute(transaction.transaction_id)
        self._state.mark_transaction_charged_back(transaction.transaction_id)

    def _check_unique(self, transaction: Transaction) -> None:
        if self._state.get_transaction(transaction.transaction_id) is not None:
            raise DuplicateTransactionError("transaction id was already applied")

    def _find_original(self, transaction: Transaction) -> Transaction:
        original = self._state.get_transaction(transaction.transaction_id)
        if original is None:
            raise TransactionNotFoundError("transaction does not exist")

        if original.client_id != transaction.client_id:
            logger.warning(
                f"{transaction.transaction_type.value.capitalize()} for tx {transaction.transaction_id}: "
                f"client {transaction.client_id} does not own it, acting on owner {original.client_id}"
            )
        return original

    def _find_disputed_original(self, transaction: Transaction) -> Transaction:
        original = self._find_original(transaction)
        if not self._state.is_transaction_disputed(transaction.transaction_id):
            raise TransactionNotDisputedError("transaction is not disputed")
        return original

    def _owner_account(self, original: Transaction) -> ClientAccount:
        # The owner's account exists: it was created when the original was applied.
        return self._state.get_or_create_account(original.client_id)
