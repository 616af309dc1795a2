import csv
import logging
import sys
from typing import Dict, TextIO

from amount import format_units
from models import ClientAccount
from payments_engine import PaymentsEngine

logger = logging.getLogger(__name__)

OUTPUT_HEADER = ["client", "available", "held", "total", "locked"]


def write_accounts(accounts: Dict[int, ClientAccount], stream: TextIO) -> None:
    """Write final balances as CSV, sorted by client id for stable output."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_HEADER)
    for client_id in sorted(accounts.keys()):
        account = accounts[client_id]
        writer.writerow([
            client_id,
            format_units(account.available),
            format_units(account.held),
            format_units(account.total),
            str(account.locked).lower(),
        ])


def main():
    logging.basicConfig(
        level=logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    if len(sys.argv) != 2:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        sys.exit(1)

    filepath = sys.argv[1]
    engine = PaymentsEngine()
    try:
        accounts = engine.process_file(filepath)
    except OSError as e:
        logger.error(f"Failed to read {filepath}: {e}")
        sys.exit(1)

    write_accounts(accounts, sys.stdout)


if __name__ == "__main__":
    main()
