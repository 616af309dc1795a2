import csv
import logging
import sys
from decimal import Decimal, DecimalException
from typing import Dict, Iterable, Iterator, Optional, TextIO

from models import Transaction, TransactionType, ClientAccount, ProcessingResult, ProcessingStats
from state_manager import StateManager
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)

MAX_CLIENT_ID = 2 ** 16 - 1
MAX_TRANSACTION_ID = 2 ** 32 - 1


class PaymentsEngine:
    """
    Replays a transaction log against client accounts, strictly in order.
    Each engine owns its own state; build a new one per run.
    """

    def __init__(self):
        self._state = StateManager()
        self._processor = TransactionProcessor(self._state)
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """
        Process CSV file and return final account states.
        OSError from opening or reading the file is not caught: an unreadable
        input aborts the run. Undecodable bytes are replaced, so such a row
        fails to parse and is skipped like any other malformed row.
        """
        logger.info(f"Processing {filepath}")

        with open(filepath, "r", newline="", encoding="utf-8-sig", errors="replace") as f:
            accounts = self.process_records(read_transactions(f))

        print(self._stats.summary(), file=sys.stderr)
        return accounts

    def process_records(self, records: Iterable[Optional[Transaction]]) -> Dict[int, ClientAccount]:
        """
        Apply parsed records in order. A None entry stands for a row that
        could not be parsed and is skipped like any other rejection.
        """
        for record in records:
            self.process_record(record)
        return self._state.get_all_accounts()

    def process_record(self, record: Optional[Transaction]) -> ProcessingResult:
        if record is None:
            result = ProcessingResult.MALFORMED_RECORD
        else:
            result = self._processor.process_transaction(record)
        self._stats.record(result)
        return result


def read_transactions(f: TextIO) -> Iterator[Optional[Transaction]]:
    """Read CSV rows lazily, yielding None for rows that fail to parse."""
    reader = csv.DictReader(f)
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            # The reader drops the offending line and resumes with the next one.
            logger.warning(f"Failed to read line {reader.line_num}: {e}")
            yield None
            continue
        yield parse_csv_row(row)


def parse_csv_row(row: Dict[str, str]) -> Optional[Transaction]:
    """Parse CSV row into Transaction."""
    try:
        # Short rows leave trailing fields as None, extra fields land under a None key.
        normalized = {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}

        transaction_type_str = normalized["type"].lower()
        client_id = int(normalized["client"])
        transaction_id = int(normalized["tx"])

        if not 0 <= client_id <= MAX_CLIENT_ID:
            raise ValueError(f"client id {client_id} out of range")
        if not 0 <= transaction_id <= MAX_TRANSACTION_ID:
            raise ValueError(f"transaction id {transaction_id} out of range")

        amount = None
        amount_str = normalized.get("amount", "")
        if amount_str:
            amount = Decimal(amount_str)
            if not amount.is_finite():
                raise ValueError(f"amount {amount_str} is not a finite number")

        return Transaction(
            transaction_type=TransactionType(transaction_type_str),
            client_id=client_id,
            transaction_id=transaction_id,
            amount=amount,
        )
    except (KeyError, ValueError, DecimalException) as e:
        logger.warning(f"Failed to parse row {row}: {e}")
        return None
