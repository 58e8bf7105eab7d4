"""
Bounded retry for ledger operations.

Only StorageConflictError and RaceLostError are retried: both mean nothing
was committed and the whole operation (lookup, allocate, transaction) can run
again from scratch. Delays grow exponentially with full jitter so racing
callers spread out instead of colliding again.
"""

import logging
import random
import time
from typing import Callable, TypeVar

from core.config import LedgerConfig
from core.exceptions import BalanceError, LedgerError, RaceLostError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay(attempt: int, config: LedgerConfig) -> float:
    """Jittered delay before retry number ``attempt`` (0-based)."""
    ceiling = min(config.backoff_max_seconds, config.backoff_base_seconds * (2 ** attempt))
    return random.uniform(0, ceiling)


def run_with_retry(
    operation: Callable[[], T],
    config: LedgerConfig,
    *,
    description: str = "ledger operation",
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Execute ``operation`` with retry on retryable ledger errors.

    If an attempt after a lost race fails balance validation (the concurrent
    settlement already consumed the balance), the caller gets RaceLostError
    chained to that fresh reason rather than a plain balance error.

    Raises:
        LedgerError: The terminal error, or the last retryable one once
            attempts are exhausted
    """
    lost_race: RaceLostError | None = None

    for attempt in range(config.max_attempts):
        try:
            return operation()
        except BalanceError as e:
            if lost_race is None:
                raise
            raise RaceLostError(lost_race.document_number, reason=e) from e
        except LedgerError as e:
            if not e.retryable:
                raise
            if isinstance(e, RaceLostError):
                lost_race = e
            if attempt >= config.max_attempts - 1:
                logger.warning(
                    "%s failed after %d attempts: %s", description, config.max_attempts, e.code
                )
                raise
            delay = backoff_delay(attempt, config)
            logger.warning(
                "%s hit %s (attempt %d/%d), retrying in %.3fs",
                description, e.code, attempt + 1, config.max_attempts, delay
            )
            sleep(delay)
