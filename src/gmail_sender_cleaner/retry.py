"""Bounded exponential backoff around transport calls."""

from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from gmail_sender_cleaner.constants import MAX_ATTEMPTS
from gmail_sender_cleaner.errors import TransientError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    logger.warning(
        "Attempt %d failed (%s). Retrying in %.0fs...",
        state.attempt_number,
        exc,
        state.next_action.sleep if state.next_action else 0,
    )


def with_retry(
    operation: Callable[[], T],
    max_attempts: int = MAX_ATTEMPTS,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run *operation*, retrying rate-limit and availability failures.

    Waits 1s, 2s, 4s... between attempts.  Auth, permission and protocol
    failures are raised on the first occurrence; after *max_attempts* the
    last failure is re-raised unchanged.
    """
    retrying = Retrying(
        retry=retry_if_exception_type(TransientError),
        wait=wait_exponential(multiplier=1, min=1),
        stop=stop_after_attempt(max_attempts),
        sleep=sleep,
        before_sleep=_log_retry,
        reraise=True,
    )
    return retrying(operation)
