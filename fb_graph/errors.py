from __future__ import annotations

from typing import Any, Mapping


class FacebookError(RuntimeError):
    """Base class for every error raised by this library."""


class ConfigError(FacebookError):
    """Raised when configuration is missing or invalid."""


class OAuthError(FacebookError):
    """Raised when an OAuth2 authorization-code exchange fails."""


class MissingAuthorizationError(FacebookError):
    """Raised before a request that needs a user access token when none is configured."""

    def __init__(self, provider: str = "facebook") -> None:
        super().__init__(f"Authorization is required for the operation, but the {provider} client has no access token")
        self.provider = provider


class ThresholdLimitReachedError(FacebookError):
    """Raised when X-App-Usage reports usage at or above the configured threshold."""

    def __init__(self, usage: Mapping[str, int] | None = None) -> None:
        super().__init__("The client has exceeded the API calls threshold")
        self.usage = dict(usage or {})


class GraphDecodeError(FacebookError):
    """Raised when a Graph response cannot be decoded into typed objects."""


class StructuralError(GraphDecodeError):
    """The envelope is structurally invalid (no `data` list, malformed paging cursor)."""


class VariantDecodeError(GraphDecodeError):
    """A record matched a variant tag but does not fit that variant's shape."""

    def __init__(self, message: str, *, variant_tag: str, raw_record: Mapping[str, Any]) -> None:
        super().__init__(message)
        self.variant_tag = variant_tag
        self.raw_record = dict(raw_record)


class GraphApiError(FacebookError):
    """An error response returned by the Graph API."""

    retry_after_seconds: float | None = None

    def __init__(
        self,
        message: str,
        *,
        code: int | None = None,
        subcode: int | None = None,
        error_type: str | None = None,
        fbtrace_id: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.subcode = subcode
        self.error_type = error_type
        self.fbtrace_id = fbtrace_id
        self.status_code = status_code


class UncategorizedApiError(GraphApiError):
    pass


class ServerError(GraphApiError):
    pass


class RateLimitExceededError(GraphApiError):
    pass


class InsufficientPermissionError(GraphApiError):
    pass


class InvalidAuthorizationError(GraphApiError):
    pass


class ExpiredAuthorizationError(InvalidAuthorizationError):
    pass


class RevokedAuthorizationError(InvalidAuthorizationError):
    pass


class DuplicateStatusError(GraphApiError):
    pass


class ResourceNotFoundError(GraphApiError):
    pass
