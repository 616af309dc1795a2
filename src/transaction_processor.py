import logging
from typing import Optional, Tuple

from models import Transaction, TransactionType, DepositState, ProcessingResult
from state_manager import StateManager

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to state, one at a time, in arrival order.
    Returns ProcessingResult to indicate whether the transaction was applied
    or which rule rejected it. Rejected transactions leave state untouched.
    """

    def __init__(self, state: StateManager):
        self._state = state

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            APPLIED: state was updated
            anything else: the reason the transaction was skipped
        """
        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                result = self._handle_deposit(transaction)
            case TransactionType.WITHDRAWAL:
                result = self._handle_withdrawal(transaction)
            case TransactionType.DISPUTE:
                result = self._handle_dispute(transaction)
            case TransactionType.RESOLVE:
                result = self._handle_resolve(transaction)
            case TransactionType.CHARGEBACK:
                result = self._handle_chargeback(transaction)
            case _:
                result = ProcessingResult.MALFORMED_RECORD

        if result != ProcessingResult.APPLIED:
            logger.info(f"Rejected {transaction}: {result.value}")
        return result

    def _check_new_funds_movement(self, transaction: Transaction) -> Tuple[Optional[ProcessingResult], Optional[int]]:
        """Checks shared by deposits and withdrawals. Returns (rejection, units)."""
        if self._state.has_transaction(transaction.transaction_id):
            return ProcessingResult.DUPLICATE_TRANSACTION, None

        if self._state.is_account_locked(transaction.client_id):
            return ProcessingResult.ACCOUNT_LOCKED, None

        if transaction.amount is None:
            return ProcessingResult.MISSING_AMOUNT, None

        if transaction.amount < 0:
            return ProcessingResult.NEGATIVE_AMOUNT, None

        return None, transaction.units

    def _handle_deposit(self, transaction: Transaction) -> ProcessingResult:
        rejection, amount = self._check_new_funds_movement(transaction)
        if rejection is not None:
            return rejection

        transaction.deposit_state = DepositState.DEPOSITED
        self._state.store_transaction(transaction)

        account = self._state.get_account(transaction.client_id)
        if account is None:
            self._state.open_account(transaction.client_id, available=amount)
        else:
            account.credit(amount)
        return ProcessingResult.APPLIED

    def _handle_withdrawal(self, transaction: Transaction) -> ProcessingResult:
        rejection, amount = self._check_new_funds_movement(transaction)
        if rejection is not None:
            return rejection

        account = self._state.get_account(transaction.client_id)
        if account is None:
            # Unknown clients still show up in the report, with zero funds.
            self._state.open_account(transaction.client_id)
            return ProcessingResult.INSUFFICIENT_FUNDS

        if amount > account.available:
            return ProcessingResult.INSUFFICIENT_FUNDS

        # Withdrawals stay NOT_APPLICABLE, so they can never be disputed.
        self._state.store_transaction(transaction)
        account.debit(amount)
        return ProcessingResult.APPLIED

    def _find_referenced(self, transaction: Transaction, required_state: DepositState) -> Tuple[Optional[ProcessingResult], Optional[Transaction]]:
        """Look up the transaction a dispute/resolve/chargeback points at."""
        original = self._state.get_transaction(transaction.transaction_id)

        if original is None:
            return ProcessingResult.UNKNOWN_TRANSACTION, None

        if original.client_id != transaction.client_id:
            logger.warning(f"{transaction.transaction_type.value} for tx {transaction.transaction_id}: client mismatch (owner {original.client_id}, got {transaction.client_id})")
            return ProcessingResult.OWNERSHIP_MISMATCH, None

        if original.deposit_state != required_state:
            return ProcessingResult.INVALID_STATE, None

        if self._state.is_account_locked(transaction.client_id):
            return ProcessingResult.ACCOUNT_LOCKED, None

        return None, original

    def _handle_dispute(self, transaction: Transaction) -> ProcessingResult:
        rejection, original = self._find_referenced(transaction, DepositState.DEPOSITED)
        if rejection is not None:
            return rejection

        account = self._state.get_account(original.client_id)
        original.deposit_state = DepositState.IN_DISPUTE
        account.hold(original.units)
        return ProcessingResult.APPLIED

    def _handle_resolve(self, transaction: Transaction) -> ProcessingResult:
        rejection, original = self._find_referenced(transaction, DepositState.IN_DISPUTE)
        if rejection is not None:
            return rejection

        account = self._state.get_account(original.client_id)
        original.deposit_state = DepositState.DEPOSITED
        account.release_hold(original.units)
        return ProcessingResult.APPLIED

    def _handle_chargeback(self, transaction: Transaction) -> ProcessingResult:
        rejection, original = self._find_referenced(transaction, DepositState.IN_DISPUTE)
        if rejection is not None:
            return rejection

        # The record keeps IN_DISPUTE; the account lock makes it terminal.
        account = self._state.get_account(original.client_id)
        account.charge_back(original.units)
        return ProcessingResult.APPLIED
