from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Sequence
from urllib.parse import parse_qsl, urlencode

import httpx

from .config import RuntimeSecrets
from .config_schema import OAuthConfig
from .errors import OAuthError

AUTHORIZE_URL = "https://www.facebook.com/v2.3/dialog/oauth"
ACCESS_TOKEN_URL = "https://graph.facebook.com/v2.3/oauth/access_token"


@dataclass(frozen=True)
class AccessGrant:
    access_token: str
    expires_in: int | None = None
    expires_at: datetime | None = None


def _parse_token_body(text: str) -> dict[str, Any]:
    # Older API versions answer with a form-encoded body labelled text/plain.
    body = (text or "").strip()
    if body.startswith("{"):
        try:
            payload = json.loads(body)
        except ValueError as e:
            raise OAuthError("Token endpoint returned malformed JSON") from e
        if not isinstance(payload, dict):
            raise OAuthError("Token endpoint returned a non-object JSON body")
        return payload
    return dict(parse_qsl(body, keep_blank_values=True))


def _error_message(text: str) -> str:
    try:
        payload = _parse_token_body(text)
    except OAuthError:
        payload = {}
    error = payload.get("error")
    if isinstance(error, Mapping) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    return "unknown error"


def _expires_in(payload: Mapping[str, Any]) -> int | None:
    raw = payload.get("expires_in")
    if raw is None:
        raw = payload.get("expires")
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise OAuthError(f"Token endpoint returned a non-integer expiry: {raw!r}") from e


def access_grant_from_body(text: str, *, now: datetime | None = None) -> AccessGrant:
    """
    Build an AccessGrant from a token-endpoint body (JSON or form-encoded).

    `expires_in` (v2.3+) wins over the legacy `expires` field.
    """
    payload = _parse_token_body(text)

    error = payload.get("error")
    if error is not None:
        message = error.get("message") if isinstance(error, Mapping) else str(error)
        raise OAuthError(f"Token exchange failed: {message or 'unknown error'}")

    token = str(payload.get("access_token") or "").strip()
    if not token:
        raise OAuthError("Token endpoint response has no access_token")

    expires_in = _expires_in(payload)
    expires_at = None
    if expires_in is not None:
        expires_at = (now or datetime.now(timezone.utc)) + timedelta(seconds=expires_in)
    return AccessGrant(access_token=token, expires_in=expires_in, expires_at=expires_at)


class FacebookOAuth2:
    """Authorization-code flow against Facebook's OAuth2 endpoints."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        redirect_uri: str | None = None,
        authorize_url: str = AUTHORIZE_URL,
        access_token_url: str = ACCESS_TOKEN_URL,
        http_client: httpx.Client | None = None,
    ) -> None:
        if not (client_id or "").strip() or not (client_secret or "").strip():
            raise OAuthError("client_id and client_secret are required")
        self._client_id = client_id.strip()
        self._client_secret = client_secret.strip()
        self._redirect_uri = redirect_uri
        self._authorize_url = authorize_url
        self._access_token_url = access_token_url
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(timeout=30.0)

    @classmethod
    def from_config(
        cls, config: OAuthConfig, secrets: RuntimeSecrets, *, http_client: httpx.Client | None = None
    ) -> "FacebookOAuth2":
        if secrets.client_id is None or secrets.client_secret is None:
            raise OAuthError(
                f"Missing OAuth client credentials: set {config.client_id_env} and {config.client_secret_env}"
            )
        return cls(
            secrets.client_id,
            secrets.client_secret,
            redirect_uri=config.redirect_uri,
            authorize_url=config.authorize_url,
            access_token_url=config.access_token_url,
            http_client=http_client,
        )

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def _redirect(self, redirect_uri: str | None) -> str:
        uri = (redirect_uri or self._redirect_uri or "").strip()
        if not uri:
            raise OAuthError("A redirect_uri is required for the authorization-code flow")
        return uri

    def build_authorize_url(
        self,
        scope: Sequence[str] = (),
        state: str | None = None,
        *,
        redirect_uri: str | None = None,
    ) -> str:
        params: list[tuple[str, str]] = [
            ("client_id", self._client_id),
            ("response_type", "code"),
            ("redirect_uri", self._redirect(redirect_uri)),
        ]
        if scope:
            params.append(("scope", ",".join(scope)))
        if state:
            params.append(("state", state))
        return f"{self._authorize_url}?{urlencode(params)}"

    def exchange_for_access(self, code: str, *, redirect_uri: str | None = None) -> AccessGrant:
        """Trade an authorization code for an access token."""
        # Facebook expects client credentials as form parameters, not basic auth.
        data = {
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "code": code,
            "redirect_uri": self._redirect(redirect_uri),
            "grant_type": "authorization_code",
        }
        try:
            response = self._http.post(self._access_token_url, data=data)
        except httpx.HTTPError as e:
            raise OAuthError(f"Token exchange request failed: {e}") from e

        if response.status_code >= 400:
            detail = _error_message(response.text)
            raise OAuthError(f"Token exchange failed with HTTP {response.status_code}: {detail}")
        return access_grant_from_body(response.text)
