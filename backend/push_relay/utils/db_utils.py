"""Database utility functions."""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import OperationalError, InterfaceError

from ..errors import DependencyUnavailable

logger = logging.getLogger(__name__)

T = TypeVar('T')

TRANSIENT_ERROR_MESSAGES = [
    "connection refused",
    "connection reset",
    "connection closed",
    "server closed",
    "timeout",
    "too many clients",
    "database is locked",
]


def is_transient(error: Exception) -> bool:
    """Check whether a database error is worth retrying."""
    error_str = str(error).lower()
    return any(msg in error_str for msg in TRANSIENT_ERROR_MESSAGES)


async def retry_on_lock(
    coro_func: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 0.1,
    rollback: Optional[Callable[[], Awaitable[None]]] = None,
) -> T:
    """Retry a database operation on transient errors with exponential backoff.

    Handles SQLite lock contention and PostgreSQL transient connection
    errors that may occur under high load.

    Args:
        coro_func: Async function to call (should be a callable that returns a coroutine)
        max_retries: Maximum number of retry attempts
        base_delay: Base delay in seconds (doubles with each retry)
        rollback: Called after every failed attempt. A failed flush or commit
            leaves the session unusable until it is rolled back, so
            coro_func must redo all the work of its transaction.

    Returns:
        The result of the coroutine function

    Raises:
        DependencyUnavailable: If all retries fail or the database is unreachable
    """
    last_exception = None
    for attempt in range(max_retries):
        try:
            return await coro_func()
        except (OperationalError, InterfaceError, OSError) as e:
            if rollback is not None:
                await rollback()
            if not is_transient(e):
                raise DependencyUnavailable(f"Database error: {e}") from e
            last_exception = e
            delay = base_delay * (2 ** attempt)
            logger.warning(f"Database transient error, retrying in {delay}s (attempt {attempt + 1}/{max_retries})")
            await asyncio.sleep(delay)
    raise DependencyUnavailable("Database unavailable") from last_exception
