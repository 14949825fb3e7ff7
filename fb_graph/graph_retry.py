from __future__ import annotations

from typing import Any, Mapping

import httpx

from .errors import GraphApiError
from .retry import RetryDecision

TRANSIENT_GRAPH_CODES = frozenset({2, 4, 17, 341, 613})


def parse_retry_after(headers: Mapping[str, Any]) -> float | None:
    val = headers.get("retry-after")
    if val is None:
        val = headers.get("Retry-After")
    if val is None:
        return None
    try:
        seconds = float(str(val).strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def classify_graph_exception(exc: BaseException) -> RetryDecision:
    """
    Graph API retry policy:
    - connection errors and timeouts
    - HTTP 429 and 5xx
    - Graph error codes for temporary unavailability and throttling
    Everything else, including decoding failures and the local usage
    threshold, fails immediately.
    """
    if isinstance(exc, httpx.TimeoutException):
        return RetryDecision(True, "timeout")
    if isinstance(exc, httpx.TransportError):
        return RetryDecision(True, "network_error")

    if isinstance(exc, GraphApiError):
        if exc.code in TRANSIENT_GRAPH_CODES:
            return RetryDecision(True, f"graph_{exc.code}", exc.retry_after_seconds)
        status = exc.status_code
        if status == 429 or (status is not None and status >= 500):
            return RetryDecision(True, f"http_{status}", exc.retry_after_seconds)
        return RetryDecision(False, f"graph_{exc.code}" if exc.code is not None else None)

    return RetryDecision(False)
