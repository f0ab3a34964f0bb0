"""Per-origin message rate limiting over 15-minute wall-clock windows."""
import logging
import threading
from datetime import datetime
from typing import Callable, Dict, Optional, Protocol

from ..errors import RateLimitExceeded

logger = logging.getLogger(__name__)

WINDOW_MINUTES = 15


def window_start(now: datetime) -> datetime:
    """Round a time down to the 15-minute mark."""
    return now.replace(
        minute=(now.minute // WINDOW_MINUTES) * WINDOW_MINUTES,
        second=0,
        microsecond=0,
    )


class RateLimiter(Protocol):
    """Admission check for messages sent on behalf of an origin."""

    def check_and_consume(self, address: str, additional: int) -> None:
        """Record the messages or raise RateLimitExceeded."""

    def count(self, address: str) -> int:
        """Messages already admitted for the address in the current window."""


class WindowRateLimiter:
    """In-process counter that resets every origin when the window rolls over.

    Counts are not persisted and restart from zero with the process, so this
    bounds sustained throughput rather than enforcing an exact quota.
    """

    def __init__(self, ceiling: int = 50000, clock: Optional[Callable[[], datetime]] = None):
        self.ceiling = ceiling
        self._clock = clock or datetime.utcnow
        self._lock = threading.Lock()
        self._counts: Dict[str, int] = {}
        self._window = window_start(self._clock())

    def _roll_window(self) -> None:
        # Caller holds the lock
        current_window = window_start(self._clock())
        if current_window != self._window:
            logger.debug(f"Rate limit window rolled over to {current_window.isoformat()}")
            self._counts = {}
            self._window = current_window

    def check_and_consume(self, address: str, additional: int) -> None:
        """Admit `additional` messages for the address unless that would pass the ceiling."""
        with self._lock:
            self._roll_window()
            current = self._counts.get(address, 0)
            if current + additional > self.ceiling:
                logger.warning(
                    f"Rate limit exceeded for {address}: {current} sent, {additional} more requested"
                )
                raise RateLimitExceeded()
            self._counts[address] = current + additional

    def count(self, address: str) -> int:
        """Messages admitted for the address in the current window."""
        with self._lock:
            self._roll_window()
            return self._counts.get(address, 0)
