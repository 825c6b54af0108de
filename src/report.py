import sys
import threading
from decimal import Decimal
from typing import Iterable, List, Optional, TextIO

from account import ClientAccount

COLUMNS = ("client", "available", "held", "total", "locked")
COLUMN_WIDTH = 12
SEPARATOR = ", "
AMOUNT_PLACES = Decimal("0.0001")


def format_amount(value: Decimal) -> str:
    """Format decimal with exactly 4 decimal places."""
    return f"{value.quantize(AMOUNT_PLACES):f}"


def format_row(values: Iterable[str]) -> str:
    return SEPARATOR.join(value.rjust(COLUMN_WIDTH) for value in values)


def format_header() -> str:
    return format_row(COLUMNS)


def format_account(account: ClientAccount) -> str:
    return format_row((
        str(account.client_id),
        format_amount(account.available),
        format_amount(account.held),
        format_amount(account.total),
        str(account.locked).lower(),
    ))


class ReportWriter:
    """
    Writes the balance report.
    Each worker's accounts are written as one uninterrupted block.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream or sys.stdout
        self._lock = threading.Lock()

    def write_header(self) -> None:
        with self._lock:
            self._stream.write(format_header() + "\n")
            self._stream.flush()

    def write_accounts(self, accounts: Iterable[ClientAccount]) -> None:
        lines: List[str] = [format_account(account) for account in sorted(accounts, key=lambda a: a.client_id)]
        if not lines:
            return
        with self._lock:
            self._stream.write("\n".join(lines) + "\n")
            self._stream.flush()
