"""
Completion barrier.

A counter armed with the number of messages the session expects. Message
handlers decrement it from paho's network thread while the session blocks in
``await_drained`` until it reaches zero.
"""
import threading
from typing import Optional


class CompletionBarrier:
    def __init__(self):
        self._cond = threading.Condition()
        self._remaining = 0
        self._armed = False

    def arm(self, n: int) -> None:
        """Set the expected message count. Must happen before any subscription exists."""
        if n < 0:
            raise ValueError(f"expected message count must be >= 0, got {n}")
        with self._cond:
            if self._armed:
                raise RuntimeError("completion barrier already armed")
            self._armed = True
            self._remaining = n
            if n == 0:
                self._cond.notify_all()

    def decrement(self) -> bool:
        """
        Count one accepted message.

        Returns False if the barrier had already drained, in which case the
        counter is left at zero.
        """
        with self._cond:
            if self._remaining == 0:
                return False
            self._remaining -= 1
            if self._remaining == 0:
                self._cond.notify_all()
            return True

    def await_drained(self, timeout: Optional[float] = None) -> bool:
        """Block until the counter reaches zero. Returns False only if ``timeout`` expired first."""
        with self._cond:
            return self._cond.wait_for(lambda: self._armed and self._remaining == 0, timeout=timeout)

    @property
    def remaining(self) -> int:
        with self._cond:
            return self._remaining

    @property
    def drained(self) -> bool:
        with self._cond:
            return self._armed and self._remaining == 0
