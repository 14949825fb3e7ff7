from __future__ import annotations

import unittest

import httpx

from fb_graph.errors import (
    InvalidAuthorizationError,
    RateLimitExceededError,
    StructuralError,
    ThresholdLimitReachedError,
    UncategorizedApiError,
)
from fb_graph.graph_retry import classify_graph_exception, parse_retry_after
from fb_graph.retry import RetryDecision, RetryEvent, RetryPolicy, call_with_retries


class _Flaky:
    def __init__(self, failures: list[BaseException], result: str = "ok") -> None:
        self._failures = list(failures)
        self._result = result
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        if self._failures:
            raise self._failures.pop(0)
        return self._result


def _always_retry(exc: BaseException) -> RetryDecision:
    return RetryDecision(True, "test")


class TestRetryPolicy(unittest.TestCase):
    def test_backoff_is_exponential_and_capped(self) -> None:
        policy = RetryPolicy(base_delay_seconds=1.0, max_delay_seconds=5.0, jitter_ratio=0.0)
        self.assertEqual([policy.backoff_seconds(n) for n in (1, 2, 3, 4)], [1.0, 2.0, 4.0, 5.0])

    def test_invalid_policy(self) -> None:
        with self.assertRaises(ValueError):
            RetryPolicy(max_attempts=0)
        with self.assertRaises(ValueError):
            RetryPolicy(base_delay_seconds=2.0, max_delay_seconds=1.0)
        with self.assertRaises(ValueError):
            RetryPolicy(jitter_ratio=1.5)


class TestCallWithRetries(unittest.TestCase):
    def test_retries_until_success(self) -> None:
        fn = _Flaky([RuntimeError("a"), RuntimeError("b")])
        sleeps: list[float] = []
        events: list[RetryEvent] = []

        result = call_with_retries(
            fn,
            policy=RetryPolicy(max_attempts=3, base_delay_seconds=0.5, max_delay_seconds=10.0, jitter_ratio=0.0),
            classify=_always_retry,
            operation="op",
            on_retry=events.append,
            sleep_fn=sleeps.append,
        )

        self.assertEqual(result, "ok")
        self.assertEqual(fn.calls, 3)
        self.assertEqual(sleeps, [0.5, 1.0])
        self.assertEqual([e.failed_attempt for e in events], [1, 2])
        self.assertEqual(events[0].error_message, "a")

    def test_reraises_after_max_attempts(self) -> None:
        fn = _Flaky([RuntimeError("1"), RuntimeError("2"), RuntimeError("3")])

        with self.assertRaises(RuntimeError) as ctx:
            call_with_retries(
                fn,
                policy=RetryPolicy(max_attempts=2, base_delay_seconds=0.0, max_delay_seconds=0.0, jitter_ratio=0.0),
                classify=_always_retry,
                operation="op",
                sleep_fn=lambda _: None,
            )

        self.assertEqual(str(ctx.exception), "2")
        self.assertEqual(fn.calls, 2)

    def test_non_retryable_fails_immediately(self) -> None:
        fn = _Flaky([ValueError("nope")])
        with self.assertRaises(ValueError):
            call_with_retries(
                fn,
                policy=RetryPolicy(),
                classify=lambda exc: RetryDecision(False),
                operation="op",
                sleep_fn=lambda _: self.fail("should not sleep"),
            )
        self.assertEqual(fn.calls, 1)

    def test_retry_after_lengthens_delay_up_to_cap(self) -> None:
        sleeps: list[float] = []
        call_with_retries(
            _Flaky([RuntimeError("x")]),
            policy=RetryPolicy(base_delay_seconds=0.5, max_delay_seconds=1.0, jitter_ratio=0.0, retry_after_cap_seconds=3.0),
            classify=lambda exc: RetryDecision(True, "throttled", 10.0),
            operation="op",
            sleep_fn=sleeps.append,
        )
        self.assertEqual(sleeps, [3.0])


class TestClassifyGraphException(unittest.TestCase):
    def test_transport_errors_are_retryable(self) -> None:
        request = httpx.Request("GET", "https://graph.facebook.com/me")
        self.assertEqual(classify_graph_exception(httpx.ReadTimeout("t", request=request)).reason, "timeout")
        self.assertEqual(classify_graph_exception(httpx.ConnectError("c", request=request)).reason, "network_error")

    def test_graph_codes_and_statuses(self) -> None:
        throttled = RateLimitExceededError("slow", code=4, status_code=400)
        throttled.retry_after_seconds = 2.0
        decision = classify_graph_exception(throttled)
        self.assertTrue(decision.retryable)
        self.assertEqual(decision.retry_after_seconds, 2.0)

        self.assertTrue(classify_graph_exception(UncategorizedApiError("HTTP 503", status_code=503)).retryable)
        self.assertTrue(classify_graph_exception(UncategorizedApiError("HTTP 429", status_code=429)).retryable)
        self.assertFalse(classify_graph_exception(InvalidAuthorizationError("bad", code=190, status_code=400)).retryable)
        self.assertFalse(classify_graph_exception(UncategorizedApiError("x", code=100, status_code=400)).retryable)

    def test_local_failures_are_not_retried(self) -> None:
        self.assertFalse(classify_graph_exception(ThresholdLimitReachedError({"call_count": 99})).retryable)
        self.assertFalse(classify_graph_exception(StructuralError("bad")).retryable)

    def test_parse_retry_after(self) -> None:
        self.assertEqual(parse_retry_after(httpx.Headers({"Retry-After": "7"})), 7.0)
        self.assertIsNone(parse_retry_after(httpx.Headers({"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"})))
        self.assertIsNone(parse_retry_after({}))


if __name__ == "__main__":
    unittest.main()
