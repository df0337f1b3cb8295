# src/fibrace/context.py
from __future__ import annotations

import threading
import time

from fibrace.utility import CANCELLED, DEADLINE_EXCEEDED, Cancelled


class CancelToken:
    """
    Shared, cooperative cancellation signal for one run.

    The token flips to cancelled either explicitly (cancel()) or lazily the
    first time it is polled after its deadline. Strategies poll it at loop
    boundaries through check(); nothing is ever interrupted from outside.
    """

    def __init__(self, deadline: float | None = None):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._deadline = deadline  # time.monotonic() value or None
        self._reason: str | None = None

    @classmethod
    def with_timeout(cls, seconds: float) -> CancelToken:
        return cls(time.monotonic() + max(0.0, float(seconds)))

    def cancel(self, reason: str = CANCELLED) -> None:
        with self._lock:
            if self._reason is None:
                self._reason = reason
                self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self.cancel(DEADLINE_EXCEEDED)
            return True
        return False

    @property
    def reason(self) -> str | None:
        return self._reason if self.cancelled else None

    @property
    def timed_out(self) -> bool:
        return self.reason == DEADLINE_EXCEEDED

    def remaining(self) -> float | None:
        """Seconds left before the deadline (None = no deadline)."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self) -> None:
        if self.cancelled:
            raise Cancelled(self._reason or CANCELLED)

    def wait(self, timeout: float | None = None) -> bool:
        """Block up to `timeout` seconds (capped at the deadline); return cancelled."""
        left = self.remaining()
        if left is not None:
            timeout = left if timeout is None else min(timeout, left)
        self._event.wait(timeout)
        return self.cancelled
