from typing import Dict, Optional

from models import Transaction, ClientAccount


class StateManager:
    """
    In-memory state for a single run: the account table and the ledger of
    deposits/withdrawals that may later be referenced by a dispute.
    Holds no rules of its own; TransactionProcessor is its only mutator.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._transactions: Dict[int, Transaction] = {}

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        """Retrieve account by client ID, None if the client was never seen."""
        return self._accounts.get(client_id)

    def open_account(self, client_id: int, available: int = 0) -> ClientAccount:
        """Create a new account with the given opening balance."""
        account = ClientAccount(client_id=client_id, available=available)
        self._accounts[client_id] = account
        return account

    def is_account_locked(self, client_id: int) -> bool:
        account = self._accounts.get(client_id)
        return account is not None and account.locked

    def store_transaction(self, transaction: Transaction) -> None:
        """Store transaction for future dispute lookups and duplicate detection."""
        self._transactions[transaction.transaction_id] = transaction

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Retrieve stored transaction by ID."""
        return self._transactions.get(transaction_id)

    def has_transaction(self, transaction_id: int) -> bool:
        return transaction_id in self._transactions

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)
