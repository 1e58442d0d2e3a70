"""
Per-operation time budget shared by the remote calls of one scrape.

A Deadline combines an optional timeout with an optional cancel event (the
daemon's stop signal). Each remote call asks it for a request timeout, which
raises once the budget is spent or the daemon is stopping.
"""

import threading
import time
from typing import Optional

from .errors import ScrapeCancelled, ScrapeTimeout


class Deadline:
    """
    Time budget for a sequence of blocking calls.

    Example:
        deadline = Deadline(10.0, cancel=stop_event)
        response = session.get(url, timeout=deadline.timeout(30.0))
    """

    def __init__(self, timeout: Optional[float] = None, cancel: Optional[threading.Event] = None):
        self.cancel = cancel
        self.expires_at = time.monotonic() + timeout if timeout is not None else None

    def remaining(self) -> Optional[float]:
        """Seconds left, or None when there is no timeout."""
        if self.expires_at is None:
            return None
        return self.expires_at - time.monotonic()

    def check(self) -> None:
        """Raise if the operation was cancelled or ran out of time."""
        if self.cancel is not None and self.cancel.is_set():
            raise ScrapeCancelled("operation cancelled")
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise ScrapeTimeout("operation timed out")

    def timeout(self, default: float) -> float:
        """Request timeout for the next call: the smaller of default and the time left."""
        self.check()
        remaining = self.remaining()
        if remaining is None:
            return default
        return min(default, remaining)


NO_DEADLINE = Deadline()
