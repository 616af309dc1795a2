from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from amount import to_decimal, to_units


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class DepositState(Enum):
    NOT_APPLICABLE = "not_applicable"
    DEPOSITED = "deposited"
    IN_DISPUTE = "in_dispute"


class ProcessingResult(Enum):
    APPLIED = "applied"
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    ACCOUNT_LOCKED = "account_locked"
    MISSING_AMOUNT = "missing_amount"
    NEGATIVE_AMOUNT = "negative_amount"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    UNKNOWN_TRANSACTION = "unknown_transaction"
    OWNERSHIP_MISMATCH = "ownership_mismatch"
    INVALID_STATE = "invalid_state"
    MALFORMED_RECORD = "malformed_record"


@dataclass
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None
    deposit_state: DepositState = DepositState.NOT_APPLICABLE
    # Fixed-point amount, None for dispute/resolve/chargeback rows.
    units: Optional[int] = field(init=False, compare=False)

    def __post_init__(self):
        # Raises a decimal.DecimalException if the amount has no fixed-point representation.
        self.units = None if self.amount is None else to_units(self.amount)

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class ClientAccount:
    """Balances are fixed-point units; see amount.py."""

    client_id: int
    available: int = 0
    held: int = 0
    locked: bool = False

    @property
    def total(self) -> int:
        return self.available + self.held

    def credit(self, amount: int) -> None:
        self.available += amount

    def debit(self, amount: int) -> None:
        self.available -= amount

    def hold(self, amount: int) -> None:
        self.available -= amount
        self.held += amount

    def release_hold(self, amount: int) -> None:
        self.held -= amount
        self.available += amount

    def charge_back(self, amount: int) -> None:
        self.held -= amount
        self.locked = True

    def decimal_balances(self) -> Tuple[Decimal, Decimal, Decimal]:
        """Return (available, held, total) scaled back to decimal."""
        return to_decimal(self.available), to_decimal(self.held), to_decimal(self.total)


class ProcessingStats:
    """Per-result counters for one run."""

    def __init__(self):
        self._counts: Counter = Counter()

    def record(self, result: ProcessingResult) -> None:
        self._counts[result] += 1

    def count(self, result: ProcessingResult) -> int:
        return self._counts[result]

    @property
    def processed(self) -> int:
        return self._counts[ProcessingResult.APPLIED]

    @property
    def malformed(self) -> int:
        return self._counts[ProcessingResult.MALFORMED_RECORD]

    @property
    def rejected(self) -> int:
        return sum(self._counts.values()) - self.processed - self.malformed

    def summary(self) -> str:
        return f"Processed: {self.processed}, Rejected: {self.rejected}, Malformed: {self.malformed}"
