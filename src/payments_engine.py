import logging
import threading
from typing import Dict, Iterator, List, Optional

from account import ClientAccount
from completion import CompletionBarrier
from config import EngineSettings
from dispatcher import Dispatcher
from message_queue import InMemoryQueue, WorkerInbox
from models import ProcessingStats, Transaction
from record_reader import read_transactions
from report import ReportWriter
from transaction_processor import TransactionProcessor
from worker import ShardWorker

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Orchestrates transaction processing over a pool of sharded workers.

    One publisher thread parses the file into a bounded queue, the calling
    thread dispatches each transaction to the worker owning its client, and
    each worker applies its transactions and reports its accounts when its
    inbox is drained.
    """

    def __init__(self, settings: Optional[EngineSettings] = None, report: Optional[ReportWriter] = None):
        self._settings = settings or EngineSettings()
        self._report = report or ReportWriter()
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process the transaction file and return final account states."""
        settings = self._settings

        # Raises InputError before anything is written or started
        transactions = read_transactions(filepath, chunk_size=settings.chunk_size, stats=self._stats)

        self._report.write_header()

        event_queue: InMemoryQueue[Transaction] = InMemoryQueue(settings.event_queue_capacity)
        barrier = CompletionBarrier(settings.worker_count)
        workers = self._start_workers(barrier)
        dispatcher = Dispatcher([worker_thread.inbox for worker_thread in workers], self._stats)

        logger.info(f"Starting processing with {settings.worker_count} workers")

        publisher_thread = threading.Thread(
            target=self._publish_transactions,
            args=(transactions, event_queue),
            name="record-publisher",
            daemon=True,
        )
        publisher_thread.start()

        try:
            dispatcher.drain(event_queue)
        finally:
            dispatcher.close()

        publisher_thread.join()
        barrier.wait()
        for worker_thread in workers:
            worker_thread.join()

        logger.info("Processing complete")

        accounts: Dict[int, ClientAccount] = {}
        for worker_thread in workers:
            accounts.update(worker_thread.get_accounts())
        return accounts

    def _start_workers(self, barrier: CompletionBarrier) -> List[ShardWorker]:
        settings = self._settings
        workers = []
        for index in range(settings.worker_count):
            inbox = WorkerInbox(index, settings.worker_queue_capacity)
            processor = TransactionProcessor(settings.locked_policy, self._stats)
            worker_thread = ShardWorker(index, settings.worker_count, inbox, processor, self._report, barrier)
            worker_thread.start()
            logger.info(f"Worker #{index} has been started")
            workers.append(worker_thread)
        return workers

    def _publish_transactions(self, transactions: Iterator[Transaction], event_queue: InMemoryQueue) -> None:
        """Read parsed transactions and publish them, waiting while the queue is full."""
        try:
            for transaction in transactions:
                event_queue.publish_message(transaction)
        finally:
            event_queue.shutdown()
