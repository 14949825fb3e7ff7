from __future__ import annotations

import json
from typing import Any, Mapping

APP_USAGE_HEADER = "X-App-Usage"

USAGE_METRICS = ("call_count", "total_time", "total_cputime")


def _header_value(headers: Mapping[str, Any], name: str) -> str | None:
    # httpx.Headers is case-insensitive; plain dicts from tests are not.
    val = headers.get(name)
    if val is None:
        val = headers.get(name.lower())
    if val is None:
        return None
    if isinstance(val, (list, tuple)):
        val = val[0] if val else None
    if val is None:
        return None
    s = str(val).strip()
    return s or None


def parse_app_usage(headers: Mapping[str, Any]) -> dict[str, int] | None:
    """
    Parse the X-App-Usage header into percentage-used values.

    Expected shape: {"call_count": x, "total_cputime": y, "total_time": z}.
    Returns None when the header is absent, empty or not JSON.
    """
    raw = _header_value(headers, APP_USAGE_HEADER)
    if raw is None:
        return None
    try:
        payload = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(payload, Mapping):
        return None

    usage: dict[str, int] = {}
    for metric in USAGE_METRICS:
        val = payload.get(metric)
        if isinstance(val, bool):
            continue
        try:
            usage[metric] = int(val)
        except (TypeError, ValueError):
            continue
    return usage


def threshold_reached(usage: Mapping[str, int] | None, threshold_percentage: int) -> bool:
    if not usage:
        return False
    return any(usage.get(metric, 0) >= threshold_percentage for metric in USAGE_METRICS)
