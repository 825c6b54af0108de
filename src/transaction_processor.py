import logging
from typing import Dict, Optional

from account import ClientAccount
from errors import DomainError, UnknownAccount
from models import LockedPolicy, ProcessingResult, ProcessingStats, Transaction, TransactionType

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to the accounts of one partition.
    Owned by exactly one worker, so no locking is done here.
    """

    def __init__(self, locked_policy: LockedPolicy = LockedPolicy.REJECT_ALL, stats: Optional[ProcessingStats] = None):
        self._locked_policy = locked_policy
        self._stats = stats or ProcessingStats()
        self._accounts: Dict[int, ClientAccount] = {}

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            SUCCESS: Applied to the account
            REJECTED: A precondition failed; the account is unchanged
        """
        try:
            self._apply(transaction)
        except DomainError as e:
            logger.info(f"Rejected {transaction}: {e}")
            self._stats.record_rejected(type(e).__name__)
            return ProcessingResult.REJECTED

        self._stats.record_applied()
        return ProcessingResult.SUCCESS

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts of this partition (for final output)."""
        return dict(self._accounts)

    def _apply(self, transaction: Transaction) -> None:
        account = self._accounts.get(transaction.client_id)
        if account is None:
            if transaction.transaction_type != TransactionType.DEPOSIT:
                raise UnknownAccount(transaction.client_id, transaction.transaction_id)
            account = ClientAccount(client_id=transaction.client_id, locked_policy=self._locked_policy)
            # A failed first deposit must not leave an empty account behind.
            account.deposit(transaction.transaction_id, transaction.amount)
            logger.info(f"New account: {transaction.client_id}")
            self._accounts[transaction.client_id] = account
            return

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                account.deposit(transaction.transaction_id, transaction.amount)
            case TransactionType.WITHDRAWAL:
                account.withdrawal(transaction.transaction_id, transaction.amount)
            case TransactionType.DISPUTE:
                account.dispute(transaction.transaction_id)
            case TransactionType.RESOLVE:
                account.resolve(transaction.transaction_id)
            case TransactionType.CHARGEBACK:
                account.chargeback(transaction.transaction_id)
            case _:
                raise AssertionError(f"Unhandled transaction type: {transaction.transaction_type}")
