import logging
import threading
from typing import Dict

from account import ClientAccount
from completion import CompletionBarrier
from dispatcher import shard_for
from message_queue import WorkerInbox
from models import Transaction
from report import ReportWriter
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)


class ShardWorker(threading.Thread):
    """
    Consumer for one shard. Owns the accounts of every client routed to it and
    applies their transactions sequentially, so account state needs no lock.
    """

    def __init__(
        self,
        index: int,
        worker_count: int,
        inbox: WorkerInbox,
        processor: TransactionProcessor,
        report: ReportWriter,
        barrier: CompletionBarrier,
    ):
        super().__init__(name=f"shard-worker-{index}")
        self.index = index
        self._worker_count = worker_count
        self.inbox = inbox
        self._processor = processor
        self._report = report
        self._barrier = barrier

    def run(self) -> None:
        try:
            self._consume_transactions()
            accounts = self._processor.get_all_accounts()
            logger.info(f"Worker #{self.index} finished with {len(accounts)} accounts")
            self._report.write_accounts(accounts.values())
        finally:
            self._barrier.done()

    def get_accounts(self) -> Dict[int, ClientAccount]:
        return self._processor.get_all_accounts()

    def _consume_transactions(self) -> None:
        """Consumer loop: pull from inbox and apply until it is closed and drained."""
        while True:
            transaction = self.inbox.consume_message()
            if transaction is None:
                if self.inbox.is_drained():
                    break
                continue
            self._handle(transaction)

    def _handle(self, transaction: Transaction) -> None:
        if shard_for(transaction.client_id, self._worker_count) != self.index:
            logger.error(f"Worker #{self.index} discarding misrouted {transaction}")
            return
        self._processor.process_transaction(transaction)
