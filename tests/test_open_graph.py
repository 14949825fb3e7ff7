from __future__ import annotations

import unittest
from urllib.parse import parse_qsl

import httpx

from fb_graph.errors import ConfigError, MissingAuthorizationError
from fb_graph.facebook import Facebook
from fb_graph.graph_client import GraphClient
from fb_graph.open_graph import OpenGraphOperations
from fb_graph.retry import NO_RETRY


class TestOpenGraph(unittest.TestCase):
    def setUp(self) -> None:
        self.requests: list[httpx.Request] = []

    def _graph(self, token: str | None = "tok", namespace: str | None = "cookbook") -> GraphClient:
        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return httpx.Response(200, json={"id": "action_1"})

        client = httpx.Client(transport=httpx.MockTransport(handler))
        return GraphClient(token, app_namespace=namespace, http_client=client, retry=NO_RETRY)

    def test_publish_action(self) -> None:
        ops = OpenGraphOperations(self._graph())

        action_id = ops.publish_action("cook", "recipe", "https://example.com/recipes/1")

        self.assertEqual(action_id, "action_1")
        req = self.requests[0]
        self.assertEqual(req.url.path, "/v2.3/me/cookbook:cook")
        self.assertEqual(dict(parse_qsl(req.content.decode("utf-8"))), {"recipe": "https://example.com/recipes/1"})

    def test_explicit_namespace_wins(self) -> None:
        OpenGraphOperations(self._graph(), app_namespace="other").publish_action("eat", "meal", "u")
        self.assertEqual(self.requests[0].url.path, "/v2.3/me/other:eat")

    def test_namespace_required(self) -> None:
        with self.assertRaises(ConfigError):
            OpenGraphOperations(self._graph(namespace=None)).publish_action("cook", "recipe", "u")
        self.assertEqual(self.requests, [])

    def test_authorization_required(self) -> None:
        with self.assertRaises(MissingAuthorizationError):
            OpenGraphOperations(self._graph(token=None)).publish_action("cook", "recipe", "u")

    def test_facade_shares_one_client(self) -> None:
        graph = self._graph()
        with Facebook(graph) as fb:
            self.assertTrue(fb.is_authorized)
            fb.open_graph.publish_action("cook", "recipe", "u")
        self.assertEqual(len(self.requests), 1)


if __name__ == "__main__":
    unittest.main()
