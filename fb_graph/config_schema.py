from __future__ import annotations

import re
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_ENV_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_API_VERSION_RE = re.compile(r"^v\d+\.\d+$")
_NAMESPACE_RE = re.compile(r"^[a-z0-9_-]+$")


def _validate_env_var_name(value: str) -> str:
    name = (value or "").strip()
    if not _ENV_NAME_RE.fullmatch(name):
        raise ValueError("must be a valid environment variable name")
    return name


PositiveInt = Annotated[int, Field(ge=1)]
NonNegativeFloat = Annotated[float, Field(ge=0.0)]


class GraphConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: str = "https://graph.facebook.com"
    api_version: str = "v2.3"
    access_token_env: str = "FACEBOOK_ACCESS_TOKEN"
    timeout_seconds: float = Field(30.0, gt=0.0)
    app_namespace: str | None = None

    @field_validator("base_url")
    @classmethod
    def _strip_base_url(cls, v: str) -> str:
        url = (v or "").strip().rstrip("/")
        if not url.startswith(("https://", "http://")):
            raise ValueError("must be an http(s) URL")
        return url

    @field_validator("api_version")
    @classmethod
    def _api_version_shape(cls, v: str) -> str:
        version = (v or "").strip()
        if not _API_VERSION_RE.fullmatch(version):
            raise ValueError("must look like v2.3")
        return version

    @field_validator("access_token_env")
    @classmethod
    def _token_env_must_be_valid(cls, v: str) -> str:
        return _validate_env_var_name(v)

    @field_validator("app_namespace")
    @classmethod
    def _namespace_shape(cls, v: str | None) -> str | None:
        if v is None:
            return None
        ns = v.strip()
        if not _NAMESPACE_RE.fullmatch(ns):
            raise ValueError("must contain only lowercase letters, digits, '-' or '_'")
        return ns


class OAuthConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    client_id_env: str = "FACEBOOK_CLIENT_ID"
    client_secret_env: str = "FACEBOOK_CLIENT_SECRET"
    redirect_uri: str | None = None
    authorize_url: str = "https://www.facebook.com/v2.3/dialog/oauth"
    access_token_url: str = "https://graph.facebook.com/v2.3/oauth/access_token"

    @field_validator("client_id_env", "client_secret_env")
    @classmethod
    def _env_must_be_valid(cls, v: str) -> str:
        return _validate_env_var_name(v)


class PagingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    default_limit: PositiveInt = 25
    max_pages: PositiveInt = 10


class RateLimitConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    # Percentage of any X-App-Usage metric at which requests stop.
    threshold_percentage: int = Field(80, ge=1, le=100)


class RetryConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_attempts: PositiveInt = 4
    base_delay_seconds: NonNegativeFloat = 0.5
    max_delay_seconds: NonNegativeFloat = 20.0
    jitter_ratio: float = Field(0.25, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _max_covers_base(self) -> "RetryConfig":
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")
        return self


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    graph: GraphConfig = Field(default_factory=GraphConfig)
    oauth: OAuthConfig = Field(default_factory=OAuthConfig)
    paging: PagingConfig = Field(default_factory=PagingConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
