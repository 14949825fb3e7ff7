from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Exponential backoff for transient Graph API failures.

    - max_attempts includes the first request (3 => 1 request + 2 retries).
    - the n-th retry waits base_delay_seconds * 2**(n-1), capped at max_delay_seconds.
    - jitter_ratio scales each delay by a random factor in [1-jitter, 1+jitter].
    - a server Retry-After can lengthen a delay, up to retry_after_cap_seconds (0 = uncapped).
    """

    max_attempts: int = 4
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 20.0
    jitter_ratio: float = 0.25
    retry_after_cap_seconds: float = 60.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay_seconds < 0 or self.max_delay_seconds < 0:
            raise ValueError("delays must be >= 0")
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")
        if not (0.0 <= self.jitter_ratio <= 1.0):
            raise ValueError("jitter_ratio must be between 0 and 1")
        if self.retry_after_cap_seconds < 0:
            raise ValueError("retry_after_cap_seconds must be >= 0")

    def backoff_seconds(self, failed_attempt: int) -> float:
        exponent = max(0, failed_attempt - 1)
        return min(self.max_delay_seconds, self.base_delay_seconds * (2**exponent))

    def capped_retry_after(self, seconds: float | None) -> float | None:
        if seconds is None or seconds < 0:
            return None
        if self.retry_after_cap_seconds > 0:
            return min(seconds, self.retry_after_cap_seconds)
        return seconds

    def jittered(self, delay: float) -> float:
        if delay <= 0 or self.jitter_ratio <= 0:
            return max(0.0, delay)
        return delay * random.uniform(1.0 - self.jitter_ratio, 1.0 + self.jitter_ratio)


NO_RETRY = RetryPolicy(max_attempts=1, base_delay_seconds=0.0, max_delay_seconds=0.0, jitter_ratio=0.0)


@dataclass(frozen=True)
class RetryDecision:
    retryable: bool
    reason: str | None = None
    retry_after_seconds: float | None = None


@dataclass(frozen=True)
class RetryEvent:
    operation: str
    failed_attempt: int
    max_attempts: int
    delay_seconds: float
    reason: str | None
    error_type: str
    error_message: str


ClassifyFn = Callable[[BaseException], RetryDecision]
OnRetryFn = Callable[[RetryEvent], None]
SleepFn = Callable[[float], None]


def call_with_retries(
    fn: Callable[[], T],
    *,
    policy: RetryPolicy,
    classify: ClassifyFn,
    operation: str,
    on_retry: OnRetryFn | None = None,
    sleep_fn: SleepFn | None = None,
) -> T:
    """
    Run fn(), retrying while classify(exc) reports a retryable failure.

    The last failure is re-raised unchanged once attempts are exhausted or
    the failure is not retryable.
    """
    sleeper = sleep_fn or time.sleep
    attempt = 1
    while True:
        try:
            return fn()
        except Exception as exc:
            decision = classify(exc)
            if not decision.retryable or attempt >= policy.max_attempts:
                raise

            delay = policy.backoff_seconds(attempt)
            retry_after = policy.capped_retry_after(decision.retry_after_seconds)
            if retry_after is not None:
                delay = max(delay, retry_after)
            delay = policy.jittered(delay)

            if on_retry is not None:
                on_retry(
                    RetryEvent(
                        operation=operation,
                        failed_attempt=attempt,
                        max_attempts=policy.max_attempts,
                        delay_seconds=delay,
                        reason=decision.reason,
                        error_type=type(exc).__name__,
                        error_message=str(exc).strip(),
                    )
                )
            if delay > 0:
                sleeper(delay)
            attempt += 1
