"""Retry with exponential backoff.

Network operations against vendor remotes fail transiently; these helpers
retry them a bounded number of times. Settings drive the policy (see
``retry`` in the bundled defaults).
"""

from __future__ import annotations

import functools
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Bounded exponential backoff parameters."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    backoff_factor: float = 2.0
    max_delay: float = 30.0

    @classmethod
    def from_settings(cls, data: dict[str, Any]) -> RetryPolicy:
        return cls(
            max_attempts=int(data.get("max_attempts", 3)),
            initial_delay=float(data.get("initial_delay_seconds", 1.0)),
            backoff_factor=float(data.get("backoff_factor", 2.0)),
            max_delay=float(data.get("max_delay_seconds", 30.0)),
        )


def retry_with_backoff(
    policy: RetryPolicy | None = None,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
):
    """
    Decorator that retries a function with exponential backoff.

    Args:
        policy: Attempts and delays (defaults to ``RetryPolicy()``)
        exceptions: Exception types that trigger a retry; others propagate at once
        sleep: Sleep function (injectable for tests)

    Example:
        @retry_with_backoff(RetryPolicy(max_attempts=3), exceptions=(NetworkError,))
        def fetch():
            ...
    """
    effective = policy or RetryPolicy()

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        name = getattr(func, "__qualname__", getattr(func, "__name__", repr(func)))

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            delay = effective.initial_delay
            attempts = max(1, effective.max_attempts)
            for attempt in range(1, attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == attempts:
                        logger.error("%s failed after %d attempts", name, attempts)
                        raise

                    logger.warning("%s attempt %d/%d failed: %s", name, attempt, attempts, e)
                    logger.info("Retrying in %.2fs...", delay)
                    sleep(delay)
                    delay = min(delay * effective.backoff_factor, effective.max_delay)

            raise RuntimeError("Unreachable")

        return wrapper

    return decorator


def call_with_retry(
    func: Callable[..., T],
    *args: Any,
    policy: RetryPolicy | None = None,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
    **kwargs: Any,
) -> T:
    """Call ``func(*args, **kwargs)`` under :func:`retry_with_backoff`."""
    return retry_with_backoff(policy, exceptions, sleep)(func)(*args, **kwargs)


__all__ = ["RetryPolicy", "retry_with_backoff", "call_with_retry"]
