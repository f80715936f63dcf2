import csv
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN
from typing import Dict, Iterable, Iterator, Optional, TextIO

from ledger_models import AMOUNT_QUANTUM, MAX_AMOUNT, AccountSnapshot, Transaction, TransactionType

logger = logging.getLogger(__name__)

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1

OUTPUT_HEADER = ("client", "available", "held", "total", "locked")


class MalformedRowError(ValueError):
    """Raised when an input row cannot be turned into a Transaction."""


def _parse_id(value: str, field: str, upper_bound: int) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise MalformedRowError(f"{field} is not an integer: {value!r}") from None

    if not 0 <= parsed <= upper_bound:
        raise MalformedRowError(f"{field} out of range: {parsed}")
    return parsed


def _parse_amount(value: str) -> Optional[Decimal]:
    """Parse an amount rounded to the ledger precision. Empty means absent."""
    if not value:
        return None

    try:
        amount = Decimal(value)
        if not amount.is_finite():
            raise MalformedRowError(f"amount is not finite: {value!r}")
        amount = amount.quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_EVEN)
    except InvalidOperation:
        # Also raised by quantize when the amount exceeds the context precision
        raise MalformedRowError(f"amount is not a valid decimal: {value!r}") from None

    if abs(amount) > MAX_AMOUNT:
        raise MalformedRowError(f"amount exceeds {MAX_AMOUNT}: {value!r}")
    return amount


def parse_row(row: Dict[Optional[str], Optional[str]]) -> Transaction:
    """Parse CSV row into Transaction."""
    # Short rows leave trailing fields as None, long rows put extras under a None key
    normalized = {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}

    try:
        transaction_type = TransactionType(normalized["type"].lower())
        client_id = _parse_id(normalized["client"], "client", MAX_CLIENT_ID)
        transaction_id = _parse_id(normalized["tx"], "tx", MAX_TRANSACTION_ID)
    except KeyError as e:
        raise MalformedRowError(f"missing column {e}") from None
    except MalformedRowError:
        raise
    except ValueError:
        raise MalformedRowError(f"unknown transaction type {normalized['type']!r}") from None

    amount = None
    if transaction_type in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL):
        amount = _parse_amount(normalized.get("amount", ""))

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def read_transactions(lines: Iterable[str]) -> Iterator[Transaction]:
    """
    Lazily decode CSV lines into transactions, in input order.
    Malformed rows are logged and skipped.
    """
    reader = csv.DictReader(lines)
    for row in reader:
        try:
            yield parse_row(row)
        except MalformedRowError as e:
            logger.warning(f"Failed to parse row {reader.line_num}: {e}")


def open_transactions(filepath: str) -> Iterator[Transaction]:
    """Read transactions from a CSV file one row at a time."""
    with open(filepath, "r", newline="") as f:
        yield from read_transactions(f)


def format_amount(value: Decimal) -> str:
    """Format decimal with exactly four fractional digits."""
    return f"{value.quantize(AMOUNT_QUANTUM):f}"


def write_snapshots(snapshots: Iterable[AccountSnapshot], stream: TextIO) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_HEADER)
    for snapshot in snapshots:
        writer.writerow(
            (
                snapshot.client_id,
                format_amount(snapshot.available),
                format_amount(snapshot.held),
                format_amount(snapshot.total),
                str(snapshot.locked).lower(),
            )
        )
