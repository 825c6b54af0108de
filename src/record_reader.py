"""
Streaming decoder for transaction files.

The file is a comma-separated text file whose first line is a header. Each
following line is ``type, tx, client, amount``; ``amount`` is only meaningful
for deposits and withdrawals. Lines are read lazily and decoded in chunks so a
large file is never held in memory. Bad lines are logged and skipped.
"""

import csv
import logging
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import BinaryIO, Iterator, List, Optional, Tuple

from errors import InputError, RecordDecodeError
from models import ProcessingStats, Transaction, TransactionType

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 100
AMOUNT_PRECISION = Decimal("0.0001")


def read_transactions(
    filepath: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    stats: Optional[ProcessingStats] = None,
) -> Iterator[Transaction]:
    """
    Open ``filepath`` and return a lazy iterator over its transactions.

    The file is opened before this function returns so that a missing or
    unreadable file raises InputError immediately rather than on first
    iteration. The returned iterator closes the file once exhausted.
    """
    try:
        f = open(filepath, "rb")
    except OSError as e:
        raise InputError(filepath, e.strerror or str(e)) from e

    logger.info(f"Reading from file: {filepath}")
    return _iter_transactions(f, chunk_size, stats or ProcessingStats())


def _iter_transactions(f: BinaryIO, chunk_size: int, stats: ProcessingStats) -> Iterator[Transaction]:
    with f:
        buffer: List[Tuple[int, str]] = []
        for line_number, raw in enumerate(f, start=1):
            if line_number == 1:
                continue
            try:
                line = raw.decode("utf-8")
            except UnicodeDecodeError:
                logger.error(f"Can't read line #{line_number}")
                stats.record_decode_error()
                continue

            buffer.append((line_number, line))
            if len(buffer) == chunk_size:
                yield from _flush(buffer, stats)

        if buffer:
            yield from _flush(buffer, stats)


def _flush(buffer: List[Tuple[int, str]], stats: ProcessingStats) -> Iterator[Transaction]:
    transactions, errors = decode_chunk(buffer)
    buffer.clear()
    for error in errors:
        logger.warning(f"Skipping record: {error}")
        stats.record_decode_error()
    for transaction in transactions:
        stats.record_parsed()
        yield transaction


def decode_chunk(lines: List[Tuple[int, str]]) -> Tuple[List[Transaction], List[RecordDecodeError]]:
    """
    Decode a batch of ``(line_number, text)`` pairs.

    A line that fails to decode is reported in the error list and does not
    affect the rest of the batch. Blank lines are ignored.
    """
    transactions: List[Transaction] = []
    errors: List[RecordDecodeError] = []

    for line_number, text in lines:
        try:
            row = next(csv.reader([text.rstrip("\r\n")]), [])
            transaction = decode_row(row, line_number)
        except RecordDecodeError as e:
            errors.append(e)
        except csv.Error as e:
            errors.append(RecordDecodeError(line_number, str(e)))
        else:
            if transaction is not None:
                transactions.append(transaction)

    return transactions, errors


def decode_row(row: List[str], line_number: int) -> Optional[Transaction]:
    """Turn one split CSV row into a Transaction. Returns None for blank rows."""
    fields = [value.strip() for value in row]
    if not any(fields):
        return None
    if len(fields) < 3 or len(fields) > 4:
        raise RecordDecodeError(line_number, f"expected 3 or 4 fields, got {len(fields)}")

    try:
        transaction_type = TransactionType(fields[0].lower())
    except ValueError:
        raise RecordDecodeError(line_number, f"unknown transaction type {fields[0]!r}") from None

    transaction_id = _parse_id(fields[1], "tx", line_number)
    client_id = _parse_id(fields[2], "client", line_number)

    amount = None
    if transaction_type.carries_amount:
        amount_str = fields[3] if len(fields) == 4 else ""
        if not amount_str:
            raise RecordDecodeError(line_number, f"{transaction_type.value} requires an amount")
        amount = _parse_amount(amount_str, line_number)

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def _parse_id(value: str, name: str, line_number: int) -> int:
    if not (value.isascii() and value.isdigit()):
        raise RecordDecodeError(line_number, f"invalid {name} id {value!r}")
    return int(value)


def _parse_amount(value: str, line_number: int) -> Decimal:
    try:
        amount = Decimal(value)
        if not amount.is_finite():
            raise RecordDecodeError(line_number, f"invalid amount {value!r}")
        amount = amount.quantize(AMOUNT_PRECISION, rounding=ROUND_DOWN)
    except InvalidOperation:
        raise RecordDecodeError(line_number, f"invalid amount {value!r}") from None

    if amount < 0:
        raise RecordDecodeError(line_number, f"negative amount {value!r}")
    # "-0" is accepted; drop its sign so it never renders as -0.0000
    return amount.copy_abs()
