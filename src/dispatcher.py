import logging
from typing import Iterable, List, Optional

from errors import DispatchOverflowError
from message_queue import InMemoryQueue, WorkerInbox
from models import ProcessingStats, Transaction

logger = logging.getLogger(__name__)


def shard_for(client_id: int, worker_count: int) -> int:
    """Index of the worker that owns ``client_id``."""
    return client_id % worker_count


class Dispatcher:
    """
    Routes each transaction to the inbox of the worker owning its client.

    Routing is a pure function of the client id, so all transactions of one
    client reach the same worker in the order they were read. Forwarding never
    waits: when an inbox is full the transaction is dropped and logged.
    """

    def __init__(self, inboxes: List[WorkerInbox], stats: Optional[ProcessingStats] = None):
        if not inboxes:
            raise ValueError("Dispatcher needs at least one worker inbox")
        self._inboxes = inboxes
        self._stats = stats or ProcessingStats()

    @property
    def worker_count(self) -> int:
        return len(self._inboxes)

    def dispatch(self, transaction: Transaction) -> bool:
        """Forward one transaction. Returns False if it was dropped."""
        inbox = self._inboxes[shard_for(transaction.client_id, self.worker_count)]
        try:
            inbox.publish_message(transaction)
        except DispatchOverflowError as e:
            logger.error(f"Failed sending event for transaction: {transaction.transaction_id}. Err: {e}")
            self._stats.record_dropped()
            return False

        self._stats.record_dispatched()
        return True

    def dispatch_all(self, transactions: Iterable[Transaction]) -> None:
        for transaction in transactions:
            self.dispatch(transaction)

    def drain(self, source: InMemoryQueue) -> None:
        """Dispatch from ``source`` until it is shut down and empty."""
        while True:
            transaction = source.consume_message()
            if transaction is None:
                if source.is_drained():
                    break
                continue
            self.dispatch(transaction)

    def close(self) -> None:
        """Tell every worker that no more transactions will arrive."""
        for inbox in self._inboxes:
            inbox.shutdown()
