import csv
import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, Optional, TextIO

from models import (
    AMOUNT_QUANTUM,
    LEDGER_CONTEXT,
    AccountSnapshot,
    MalformedRecordError,
    Transaction,
    TransactionType,
)

logger = logging.getLogger(__name__)

INPUT_FIELDS = ("type", "client", "tx", "amount")
OUTPUT_FIELDS = ("client", "available", "held", "total", "locked")


def read_transactions(stream: TextIO) -> Iterator[Transaction]:
    """
    Yield validated transactions from a CSV stream, one row at a time.

    Headers and values are whitespace-trimmed and the type is case-insensitive.
    Any malformed row raises MalformedRecordError; nothing is skipped.
    Undecodable bytes and CSV syntax errors are malformed rows too.
    """
    reader = csv.DictReader(stream, skipinitialspace=True)
    try:
        if reader.fieldnames is not None:
            reader.fieldnames = [name.strip().lower() for name in reader.fieldnames]
    except (ValueError, csv.Error) as e:
        raise MalformedRecordError(f"line {reader.line_num}: {e!r} in header") from e

    while True:
        row = None
        try:
            row = next(reader)
            transaction = parse_csv_row(row)
        except StopIteration:
            return
        # UnicodeDecodeError is a ValueError.
        except (KeyError, ValueError, InvalidOperation, csv.Error) as e:
            raise MalformedRecordError(f"line {reader.line_num}: {e!r} in row {row}") from e
        yield transaction


def parse_csv_row(row: Dict[str, Optional[str]]) -> Transaction:
    """Parse a CSV row into Transaction."""
    normalized = {k: v.strip() for k, v in row.items() if k is not None and v is not None}

    for field in INPUT_FIELDS[:3]:
        if field not in normalized:
            raise KeyError(field)

    transaction_type = TransactionType(normalized["type"].lower())
    client_id = parse_id(normalized["client"])
    transaction_id = parse_id(normalized["tx"])

    amount = None
    amount_str = normalized.get("amount", "")
    if amount_str:
        amount = Decimal(amount_str)
        if amount.is_finite():
            # Midpoints round away from zero.
            amount = amount.quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def parse_id(value: str) -> int:
    """Plain ASCII digits only; int() alone would also take '1_0', '+1' or '١'."""
    if not (value.isascii() and value.isdecimal()):
        raise ValueError(f"invalid id {value!r}")
    return int(value)


def write_accounts(snapshots: Iterable[AccountSnapshot], stream: TextIO) -> None:
    """Write account snapshots as CSV with decimals at fixed 4-digit scale."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_FIELDS)
    count = 0
    for snapshot in snapshots:
        writer.writerow([
            snapshot.client_id,
            format_amount(snapshot.available),
            format_amount(snapshot.held),
            format_amount(snapshot.total),
            str(snapshot.locked).lower(),
        ])
        count += 1
    logger.debug(f"Wrote {count} accounts")


def format_amount(value: Decimal) -> str:
    return f"{value.quantize(AMOUNT_QUANTUM, context=LEDGER_CONTEXT):f}"
