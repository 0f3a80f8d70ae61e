"""Retry policy for AI and tracker calls."""

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from haitask.errors import HttpError, NetworkError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRIES = 2
DEFAULT_DELAY = 1.0
DEFAULT_BACKOFF = 2.0


def is_retryable(exc: BaseException) -> bool:
    """429, any 5xx and connection-level failures are worth another attempt."""
    if isinstance(exc, HttpError):
        return exc.status == 429 or 500 <= exc.status < 600
    return isinstance(exc, NetworkError)


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    wait = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning("Attempt %d failed (%s); retrying in %.1fs", retry_state.attempt_number, exc, wait)


def with_retry(
    fn: Callable[[], T],
    retries: int = DEFAULT_RETRIES,
    delay: float = DEFAULT_DELAY,
    backoff: float = DEFAULT_BACKOFF,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call fn, retrying retryable failures up to `retries` more times.

    Waits delay, delay * backoff, delay * backoff**2, ... between attempts.
    The last failure is re-raised unchanged.
    """
    retrying = Retrying(
        stop=stop_after_attempt(retries + 1),
        wait=wait_exponential(multiplier=delay, exp_base=backoff),
        retry=retry_if_exception(is_retryable),
        sleep=sleep,
        before_sleep=_log_retry,
        reraise=True,
    )
    return retrying(fn)
