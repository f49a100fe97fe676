"""Retry utilities with exponential backoff."""

import logging

import structlog
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from errors import StaleProfileError

logger = structlog.stdlib.get_logger(__name__)


def stale_write_retry(
    max_attempts: int = 5,
    min_wait: float = 0.01,
    max_wait: float = 0.2,
):
    """Retry a read-modify-write when another writer bumped the profile version.

    The wrapped function must re-read the profile on every attempt.

    Args:
        max_attempts: Max attempts, including the first
        min_wait: Min wait between attempts (seconds)
        max_wait: Max wait between attempts (seconds)
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=0.01, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(StaleProfileError),
        before_sleep=before_sleep_log(logger, logging.DEBUG),
        reraise=True,
    )
