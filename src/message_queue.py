import threading
from queue import Full, Queue, Empty
from typing import Generic, Optional, TypeVar

from errors import DispatchOverflowError

T = TypeVar("T")


class InMemoryQueue(Generic[T]):
    """
    Bounded thread-safe message queue with a shutdown signal.
    All synchronization is internal - callers never need to lock.
    """

    DEFAULT_TIMEOUT = 0.1
    DEFAULT_CAPACITY = 100

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        self._queue: Queue[T] = Queue(maxsize=capacity)
        self._shutdown_event = threading.Event()

    def publish_message(self, message: T) -> None:
        """Add message to the queue, waiting while it is full. Thread-safe."""
        self._queue.put(message)

    def try_publish_message(self, message: T) -> bool:
        """Add message to the queue without waiting. Returns False if full."""
        try:
            self._queue.put_nowait(message)
        except Full:
            return False
        return True

    def consume_message(self, timeout: float = DEFAULT_TIMEOUT) -> Optional[T]:
        """
        Get next message from the queue.
        Returns None if queue is empty after timeout.
        Thread-safe.
        """
        try:
            return self._queue.get(timeout=timeout)
        except Empty:
            return None

    def is_empty(self) -> bool:
        """Check if queue is empty."""
        return self._queue.empty()

    def is_drained(self) -> bool:
        """True once shutdown was signaled and every message was consumed."""
        return self.is_shutdown() and self.is_empty()

    def size(self) -> int:
        """Return approximate queue size."""
        return self._queue.qsize()

    def shutdown(self) -> None:
        """Signal no more messages will be published."""
        self._shutdown_event.set()

    def is_shutdown(self) -> bool:
        """Check if shutdown has been signaled."""
        return self._shutdown_event.is_set()


class WorkerInbox(InMemoryQueue):
    """Inbound queue of one worker. Publishing never blocks."""

    def __init__(self, shard: int, capacity: int = InMemoryQueue.DEFAULT_CAPACITY):
        super().__init__(capacity)
        self.shard = shard

    def publish_message(self, message) -> None:
        """Add message or raise DispatchOverflowError if the inbox is full."""
        if not self.try_publish_message(message):
            raise DispatchOverflowError(message.transaction_id, self.shard)
