from dataclasses import dataclass, field
from decimal import Decimal, Inexact, localcontext
from typing import Dict, Set, Tuple

from errors import (
    AccountLocked,
    AmountOverflow,
    DisputeAlreadyClosed,
    DisputeAlreadyOpen,
    DisputeNotFound,
    DuplicateTransaction,
    InsufficientFunds,
    TransactionNotFound,
)
from models import LockedPolicy


@dataclass
class ClientAccount:
    """
    Balance and dispute history of one client.

    Every operation checks all of its preconditions before touching any field,
    so a raised DomainError always leaves the account exactly as it was.
    Accounts are owned by a single worker and are not thread-safe.
    """

    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False
    locked_policy: LockedPolicy = LockedPolicy.REJECT_ALL
    transactions: Dict[int, Decimal] = field(default_factory=dict)
    open_disputes: Set[int] = field(default_factory=set)
    resolved: Set[int] = field(default_factory=set)
    charged_back: Set[int] = field(default_factory=set)

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def snapshot(self) -> Tuple[Decimal, Decimal, Decimal, bool]:
        return self.available, self.held, self.total, self.locked

    def deposit(self, transaction_id: int, amount: Decimal) -> None:
        self._check_not_locked(transaction_id)
        self._check_new_transaction(transaction_id)
        available, held = self._rebalance(transaction_id, amount, Decimal("0"))

        self.available, self.held = available, held
        self.transactions[transaction_id] = amount

    def withdrawal(self, transaction_id: int, amount: Decimal) -> None:
        self._check_not_locked(transaction_id)
        self._check_new_transaction(transaction_id)
        if amount > self.available:
            raise InsufficientFunds(self.client_id, transaction_id, self.available, amount)
        available, held = self._rebalance(transaction_id, amount.copy_negate(), Decimal("0"))

        self.available, self.held = available, held
        self.transactions[transaction_id] = amount

    def dispute(self, transaction_id: int) -> None:
        if self.locked:
            raise AccountLocked(self.client_id, transaction_id)

        amount = self.transactions.get(transaction_id)
        if amount is None:
            raise TransactionNotFound(self.client_id, transaction_id)
        if transaction_id in self.open_disputes:
            raise DisputeAlreadyOpen(self.client_id, transaction_id)
        if transaction_id in self.charged_back:
            raise DisputeAlreadyClosed(self.client_id, transaction_id)
        if self.available < amount:
            raise InsufficientFunds(self.client_id, transaction_id, self.available, amount)
        available, held = self._rebalance(transaction_id, amount.copy_negate(), amount)

        self.available, self.held = available, held
        self.resolved.discard(transaction_id)
        self.open_disputes.add(transaction_id)

    def resolve(self, transaction_id: int) -> None:
        self._check_not_locked(transaction_id)
        amount = self._open_dispute_amount(transaction_id)
        available, held = self._rebalance(transaction_id, amount, amount.copy_negate())

        self.available, self.held = available, held
        self.open_disputes.remove(transaction_id)
        self.resolved.add(transaction_id)

    def chargeback(self, transaction_id: int) -> None:
        self._check_not_locked(transaction_id)
        amount = self._open_dispute_amount(transaction_id)
        available, held = self._rebalance(transaction_id, Decimal("0"), amount.copy_negate())

        self.available, self.held = available, held
        self.locked = True
        self.open_disputes.remove(transaction_id)
        self.charged_back.add(transaction_id)

    def _rebalance(self, transaction_id: int, to_available: Decimal, to_held: Decimal) -> Tuple[Decimal, Decimal]:
        """
        New (available, held) after applying the given changes.

        Raises AmountOverflow instead of letting the decimal context round
        either balance or the derived total.
        """
        with localcontext() as ctx:
            ctx.traps[Inexact] = True
            try:
                available = self.available + to_available
                held = self.held + to_held
                _total = available + held
            except Inexact:
                raise AmountOverflow(self.client_id, transaction_id) from None
        return available, held

    def _check_not_locked(self, transaction_id: int) -> None:
        # Under BLOCK_DISPUTES only dispute() refuses locked accounts.
        if self.locked and self.locked_policy == LockedPolicy.REJECT_ALL:
            raise AccountLocked(self.client_id, transaction_id)

    def _check_new_transaction(self, transaction_id: int) -> None:
        if transaction_id in self.transactions:
            raise DuplicateTransaction(self.client_id, transaction_id)

    def _open_dispute_amount(self, transaction_id: int) -> Decimal:
        if transaction_id not in self.open_disputes:
            raise DisputeNotFound(self.client_id, transaction_id)
        return self.transactions[transaction_id]
