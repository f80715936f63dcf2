import csv
import logging
import sys
from typing import List, Optional

from ledger_config import load_settings
from csv_codec import write_snapshots
from ledger_engine import LedgerEngine


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level_value,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    if len(argv) != 1:
        print("Usage: ledger-engine <transactions.csv>", file=sys.stderr)
        return 1

    filepath = argv[0]
    engine = LedgerEngine()
    try:
        engine.process_file(filepath)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        print(f"Failed to process '{filepath}': {e}", file=sys.stderr)
        return 1

    write_snapshots(engine.snapshot(), sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
