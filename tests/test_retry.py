"""Tests for the retry/backoff wrapper."""

import pytest

from gmail_sender_cleaner.errors import (
    AuthRequired,
    PermissionDenied,
    RateLimited,
    RequestFailed,
    ServiceUnavailable,
)
from gmail_sender_cleaner.retry import with_retry


class Flaky:
    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def test_success_needs_no_wait():
    slept = []
    assert with_retry(Flaky("ok"), sleep=slept.append) == "ok"
    assert slept == []


def test_transient_failures_back_off_exponentially():
    slept = []
    op = Flaky(RateLimited("429"), ServiceUnavailable("503"), "ok")

    assert with_retry(op, max_attempts=3, sleep=slept.append) == "ok"
    assert op.calls == 3
    assert slept == [1, 2]


def test_exhaustion_raises_last_failure():
    slept = []
    op = Flaky(RateLimited("first"), RateLimited("second"), ServiceUnavailable("last"))

    with pytest.raises(ServiceUnavailable, match="last"):
        with_retry(op, max_attempts=3, sleep=slept.append)
    assert op.calls == 3


@pytest.mark.parametrize("error", [AuthRequired("401"), PermissionDenied("403"), RequestFailed("400", 400)])
def test_non_retryable_failures_raise_immediately(error):
    slept = []
    op = Flaky(error, "never reached")

    with pytest.raises(type(error)):
        with_retry(op, sleep=slept.append)
    assert op.calls == 1
    assert slept == []
