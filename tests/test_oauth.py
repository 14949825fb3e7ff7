from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, parse_qsl, urlsplit

import httpx

from fb_graph.config import RuntimeSecrets
from fb_graph.config_schema import OAuthConfig
from fb_graph.errors import OAuthError
from fb_graph.oauth import AccessGrant, FacebookOAuth2, access_grant_from_body


class TestAccessGrantFromBody(unittest.TestCase):
    def test_json_body(self) -> None:
        now = datetime(2015, 1, 1, tzinfo=timezone.utc)

        grant = access_grant_from_body('{"access_token": "abc", "token_type": "bearer", "expires_in": 3600}', now=now)

        self.assertEqual(grant, AccessGrant("abc", 3600, now + timedelta(hours=1)))

    def test_form_encoded_body_with_legacy_expires(self) -> None:
        grant = access_grant_from_body("access_token=abc&expires=5183999")
        self.assertEqual(grant.access_token, "abc")
        self.assertEqual(grant.expires_in, 5183999)
        self.assertIsNotNone(grant.expires_at)

    def test_expires_in_wins_over_expires(self) -> None:
        grant = access_grant_from_body("access_token=abc&expires=10&expires_in=20")
        self.assertEqual(grant.expires_in, 20)

    def test_no_expiry(self) -> None:
        grant = access_grant_from_body('{"access_token": "abc"}')
        self.assertIsNone(grant.expires_in)
        self.assertIsNone(grant.expires_at)

    def test_error_body(self) -> None:
        with self.assertRaises(OAuthError) as ctx:
            access_grant_from_body('{"error": {"message": "Invalid verification code format.", "code": 100}}')
        self.assertIn("Invalid verification code", str(ctx.exception))

    def test_missing_token(self) -> None:
        with self.assertRaises(OAuthError):
            access_grant_from_body("expires=10")
        with self.assertRaises(OAuthError):
            access_grant_from_body('{"access_token": "abc", "expires_in": "soon"}')


class TestFacebookOAuth2(unittest.TestCase):
    def setUp(self) -> None:
        self.requests: list[httpx.Request] = []

    def _oauth(self, response: httpx.Response, **kwargs: object) -> FacebookOAuth2:
        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return response

        client = httpx.Client(transport=httpx.MockTransport(handler))
        return FacebookOAuth2("app-id", "app-secret", http_client=client, **kwargs)  # type: ignore[arg-type]

    def test_build_authorize_url(self) -> None:
        oauth = self._oauth(httpx.Response(200), redirect_uri="https://example.com/cb")

        url = oauth.build_authorize_url(["email", "user_posts"], "xyz")

        parts = urlsplit(url)
        self.assertEqual(f"{parts.scheme}://{parts.netloc}{parts.path}", "https://www.facebook.com/v2.3/dialog/oauth")
        query = parse_qs(parts.query)
        self.assertEqual(query["client_id"], ["app-id"])
        self.assertEqual(query["redirect_uri"], ["https://example.com/cb"])
        self.assertEqual(query["scope"], ["email,user_posts"])
        self.assertEqual(query["state"], ["xyz"])
        self.assertEqual(query["response_type"], ["code"])

    def test_redirect_uri_required(self) -> None:
        oauth = self._oauth(httpx.Response(200))
        with self.assertRaises(OAuthError):
            oauth.build_authorize_url()

    def test_exchange_for_access(self) -> None:
        oauth = self._oauth(
            httpx.Response(200, json={"access_token": "user-token", "expires_in": 60}),
            redirect_uri="https://example.com/cb",
        )

        grant = oauth.exchange_for_access("the-code")

        self.assertEqual(grant.access_token, "user-token")
        req = self.requests[0]
        self.assertEqual(req.method, "POST")
        self.assertEqual(req.url.path, "/v2.3/oauth/access_token")
        form = dict(parse_qsl(req.content.decode("utf-8")))
        self.assertEqual(form["client_id"], "app-id")
        self.assertEqual(form["client_secret"], "app-secret")
        self.assertEqual(form["code"], "the-code")
        self.assertEqual(form["redirect_uri"], "https://example.com/cb")

    def test_exchange_failure(self) -> None:
        oauth = self._oauth(
            httpx.Response(400, json={"error": {"message": "This authorization code has expired.", "code": 100}}),
        )
        with self.assertRaises(OAuthError) as ctx:
            oauth.exchange_for_access("old", redirect_uri="https://example.com/cb")
        self.assertIn("HTTP 400", str(ctx.exception))
        self.assertIn("has expired", str(ctx.exception))

    def test_from_config_needs_client_credentials(self) -> None:
        with self.assertRaises(OAuthError):
            FacebookOAuth2.from_config(OAuthConfig(), RuntimeSecrets(access_token="t"))

        oauth = FacebookOAuth2.from_config(
            OAuthConfig(redirect_uri="https://example.com/cb"),
            RuntimeSecrets(access_token="t", client_id="id", client_secret="secret"),
        )
        self.assertIn("client_id=id", oauth.build_authorize_url())
        oauth.close()


if __name__ == "__main__":
    unittest.main()
