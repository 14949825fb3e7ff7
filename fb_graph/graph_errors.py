from __future__ import annotations

import json
from typing import Any, Mapping

from .errors import (
    DuplicateStatusError,
    ExpiredAuthorizationError,
    GraphApiError,
    InsufficientPermissionError,
    InvalidAuthorizationError,
    RateLimitExceededError,
    ResourceNotFoundError,
    RevokedAuthorizationError,
    ServerError,
    UncategorizedApiError,
)

RATE_LIMIT_CODES = frozenset({4, 17, 341, 613})
SERVER_CODES = frozenset({2})
PERMISSION_CODES = frozenset({10})
INVALID_AUTH_CODES = frozenset({102, 104, 190})
EXPIRED_SUBCODES = frozenset({463})
REVOKED_SUBCODES = frozenset({458, 460, 467})

_CODE_DUPLICATE_STATUS = 506
_CODE_UNKNOWN_ALIAS = 803
_CODE_UNKNOWN_PATH = 2500


def _coerce_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _coerce_str(value: Any) -> str | None:
    if isinstance(value, str):
        s = value.strip()
        return s if s else None
    return None


def _error_class(code: int | None, subcode: int | None, message: str) -> type[GraphApiError]:
    if code is None:
        return UncategorizedApiError
    if code in RATE_LIMIT_CODES:
        return RateLimitExceededError
    if code in SERVER_CODES:
        return ServerError
    if code in PERMISSION_CODES or 200 <= code <= 299:
        return InsufficientPermissionError
    if code in INVALID_AUTH_CODES:
        if subcode in EXPIRED_SUBCODES:
            return ExpiredAuthorizationError
        if subcode in REVOKED_SUBCODES:
            return RevokedAuthorizationError
        return InvalidAuthorizationError
    if code == _CODE_DUPLICATE_STATUS:
        return DuplicateStatusError
    if code == _CODE_UNKNOWN_ALIAS:
        return ResourceNotFoundError
    if code == _CODE_UNKNOWN_PATH and "unknown path" in message.casefold():
        return ResourceNotFoundError
    return UncategorizedApiError


def error_from_body(body: Any, *, status_code: int | None = None) -> GraphApiError | None:
    """
    Translate a Graph error payload ({"error": {...}}) into an exception.

    Returns None when `body` carries no error node.
    """
    if not isinstance(body, Mapping):
        return None
    node = body.get("error")
    if not isinstance(node, Mapping):
        return None

    code = _coerce_int(node.get("code"))
    subcode = _coerce_int(node.get("error_subcode"))
    message = _coerce_str(node.get("message")) or "Unknown Graph API error"
    cls = _error_class(code, subcode, message)

    return cls(
        message,
        code=code,
        subcode=subcode,
        error_type=_coerce_str(node.get("type")),
        fbtrace_id=_coerce_str(node.get("fbtrace_id")),
        status_code=status_code,
    )


def error_from_response_text(text: str, *, status_code: int) -> GraphApiError:
    """Map a non-2xx response body; bodies without an error node stay uncategorized."""
    try:
        body = json.loads(text) if text else None
    except ValueError:
        body = None

    err = error_from_body(body, status_code=status_code)
    if err is not None:
        return err

    snippet = (text or "").strip()[:500]
    message = f"HTTP {status_code}" + (f": {snippet}" if snippet else "")
    return UncategorizedApiError(message, status_code=status_code)
