import threading
from typing import Optional


class CompletionBarrier:
    """
    Counts down as workers finish; ``wait`` returns once all of them have.
    All state is guarded by a condition variable.
    """

    def __init__(self, count: int):
        if count < 0:
            raise ValueError("count must not be negative")
        self._remaining = count
        self._condition = threading.Condition()

    def done(self) -> None:
        """Mark one participant as finished."""
        with self._condition:
            if self._remaining == 0:
                raise ValueError("done() called more times than the barrier count")
            self._remaining -= 1
            if self._remaining == 0:
                self._condition.notify_all()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until every participant is done. Returns False on timeout."""
        with self._condition:
            return self._condition.wait_for(lambda: self._remaining == 0, timeout=timeout)

    @property
    def remaining(self) -> int:
        with self._condition:
            return self._remaining
