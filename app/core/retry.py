# app/core/retry.py
"""Bounded retries with exponential backoff for whole DB transactions."""
import logging
import time
from typing import Callable, TypeVar

from sqlalchemy.exc import OperationalError
from sqlmodel import Session

from app.core.errors import StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_transaction(
    session: Session,
    work: Callable[[], T],
    *,
    name: str,
    max_attempts: int = 3,
    initial_delay: float = 0.05,
    max_delay: float = 1.0,
    retry_on: tuple[type[Exception], ...] = (OperationalError,),
) -> T:
    """
    Run ``work`` until it succeeds or ``max_attempts`` is exhausted.

    ``work`` must be a complete unit: it reads, mutates and commits. Between
    attempts the session is rolled back so the next attempt starts from
    committed state; a half-applied attempt is never resumed.

    Raises:
        StorageError: when every attempt failed with a ``retry_on`` error.
    """
    delay = initial_delay
    last_exception: Exception | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            return work()
        except retry_on as e:
            session.rollback()
            last_exception = e
            if attempt < max_attempts:
                logger.warning(
                    "%s failed (attempt %d/%d): %s. Retrying in %.2fs...",
                    name, attempt, max_attempts, e, delay,
                )
                if delay > 0:
                    time.sleep(delay)
                delay = min(delay * 2, max_delay)
            else:
                logger.error("%s failed after %d attempts: %s", name, max_attempts, e)

    raise StorageError() from last_exception
