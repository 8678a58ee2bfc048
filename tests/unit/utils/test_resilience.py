"""Tests for retry with exponential backoff."""
from __future__ import annotations

import pytest

from gitvendor.core.exceptions import AuthRequiredError, NetworkError
from gitvendor.core.utils.resilience import RetryPolicy, call_with_retry, retry_with_backoff


class TestRetryWithBackoff:
    def test_retries_until_success_with_growing_delays(self) -> None:
        sleeps: list[float] = []
        attempts = {"n": 0}

        @retry_with_backoff(
            RetryPolicy(max_attempts=4, initial_delay=1.0, backoff_factor=2.0, max_delay=3.0),
            exceptions=(NetworkError,),
            sleep=sleeps.append,
        )
        def flaky() -> str:
            attempts["n"] += 1
            if attempts["n"] < 4:
                raise NetworkError("blip")
            return "ok"

        assert flaky() == "ok"
        assert sleeps == [1.0, 2.0, 3.0]

    def test_gives_up_after_max_attempts(self) -> None:
        calls = []

        def always_down() -> None:
            calls.append(1)
            raise NetworkError("down")

        with pytest.raises(NetworkError):
            call_with_retry(
                always_down,
                policy=RetryPolicy(max_attempts=3),
                exceptions=(NetworkError,),
                sleep=lambda _s: None,
            )
        assert len(calls) == 3

    def test_non_retryable_errors_propagate_immediately(self) -> None:
        calls = []

        def denied() -> None:
            calls.append(1)
            raise AuthRequiredError("no credentials")

        with pytest.raises(AuthRequiredError):
            call_with_retry(denied, exceptions=(NetworkError,), sleep=lambda _s: None)
        assert len(calls) == 1

    def test_policy_from_settings(self) -> None:
        policy = RetryPolicy.from_settings({"max_attempts": "5", "initial_delay_seconds": 0.5})

        assert policy.max_attempts == 5
        assert policy.initial_delay == 0.5
        assert policy.backoff_factor == 2.0
