import threading
from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class ProcessingResult(Enum):
    SUCCESS = "success"
    REJECTED = "rejected"


class LockedPolicy(Enum):
    """What a locked (charged back) account still accepts."""

    REJECT_ALL = "reject_all"
    BLOCK_DISPUTES = "block_disputes"


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


class ProcessingStats:
    """Thread-safe counters for tracking processing statistics."""

    def __init__(self):
        self._lock = threading.Lock()
        self.parsed = 0
        self.decode_errors = 0
        self.dispatched = 0
        self.dropped = 0
        self.applied = 0
        self._rejected: Counter = Counter()

    def record_parsed(self):
        with self._lock:
            self.parsed += 1

    def record_decode_error(self):
        with self._lock:
            self.decode_errors += 1

    def record_dispatched(self):
        with self._lock:
            self.dispatched += 1

    def record_dropped(self):
        with self._lock:
            self.dropped += 1

    def record_applied(self):
        with self._lock:
            self.applied += 1

    def record_rejected(self, reason: str):
        with self._lock:
            self._rejected[reason] += 1

    @property
    def rejected(self) -> int:
        with self._lock:
            return sum(self._rejected.values())

    def rejected_by_reason(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._rejected)

    def summary(self) -> str:
        return (
            f"Parsed: {self.parsed}, "
            f"Decode errors: {self.decode_errors}, "
            f"Dispatched: {self.dispatched}, "
            f"Dropped: {self.dropped}, "
            f"Applied: {self.applied}, "
            f"Rejected: {self.rejected}"
        )
