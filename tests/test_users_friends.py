from __future__ import annotations

import unittest
from typing import Any

import httpx

from fb_graph.errors import MissingAuthorizationError, StructuralError
from fb_graph.friends import FriendOperations
from fb_graph.graph_client import GraphClient
from fb_graph.retry import NO_RETRY
from fb_graph.users import UserOperations


class _Routes:
    """Answers by request path; unknown paths get an empty connection."""

    def __init__(self, routes: dict[str, Any]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/v2.3/")
        return httpx.Response(200, json=self.routes.get(path, {"data": []}))

    def graph(self, token: str | None = "tok") -> GraphClient:
        client = httpx.Client(transport=httpx.MockTransport(self.handler))
        return GraphClient(token, http_client=client, retry=NO_RETRY)


class TestUserOperations(unittest.TestCase):
    def test_profile(self) -> None:
        routes = _Routes(
            {
                "me": {
                    "id": "1",
                    "name": "Jane Doe",
                    "hometown": {"id": "h", "name": "Town"},
                    "work": [{"employer": {"id": "e", "name": "ACME"}}],
                    "updated_time": "2014-01-01T00:00:00+0000",
                }
            }
        )

        user = UserOperations(routes.graph(token=None)).get_user_profile()

        self.assertEqual(user.name, "Jane Doe")
        assert user.hometown is not None
        self.assertEqual(user.hometown.name, "Town")
        self.assertEqual(user.work[0].employer.name, "ACME")  # type: ignore[union-attr]
        self.assertIn("relationship_status", routes.requests[0].url.params.get("fields", ""))

    def test_permissions_keep_granted_in_order(self) -> None:
        routes = _Routes(
            {
                "me/permissions": {
                    "data": [
                        {"permission": "public_profile", "status": "granted"},
                        {"permission": "user_friends", "status": "declined"},
                        {"permission": "email", "status": "granted"},
                    ]
                }
            }
        )

        names = UserOperations(routes.graph()).get_user_permissions()

        self.assertEqual(names, ["public_profile", "email"])

    def test_permissions_need_a_token(self) -> None:
        with self.assertRaises(MissingAuthorizationError):
            UserOperations(_Routes({}).graph(token=None)).get_user_permissions()

    def test_cover_photo_accepts_nested_cover_id(self) -> None:
        routes = _Routes({"me": {"id": "1", "cover": {"cover_id": "c9", "source": "https://x/c.jpg", "offset_y": 40}}})

        cover = UserOperations(routes.graph()).get_cover_photo()

        self.assertEqual(cover.id, "c9")
        self.assertEqual(cover.offset_y, 40)
        self.assertEqual(cover.offset_x, 0)

    def test_search_users(self) -> None:
        routes = _Routes({"search": {"data": [{"id": "5", "name": "Jo"}]}})

        results = UserOperations(routes.graph()).search("jo")

        self.assertEqual([r.name for r in results], ["Jo"])
        self.assertEqual(routes.requests[0].url.params.get("type"), "user")

    def test_tagged_places(self) -> None:
        routes = _Routes(
            {"me/tagged_places": {"data": [{"id": "t1", "place": {"id": "p", "name": "Park"}}]}}
        )
        places = UserOperations(routes.graph()).get_tagged_places()
        self.assertEqual(places[0].place.name, "Park")


class TestFriendOperations(unittest.TestCase):
    def test_friend_ids_have_no_paging(self) -> None:
        routes = _Routes(
            {
                "me/friends": {
                    "data": [{"id": "10"}, {"id": 11}],
                    "paging": {"next": "https://graph.facebook.com/v2.3/me/friends?after=Z"},
                }
            }
        )

        ids = FriendOperations(routes.graph()).get_friend_ids()

        self.assertEqual(list(ids), ["10", "11"])
        self.assertIsNone(ids.next_page)

    def test_friend_id_without_id_is_structural(self) -> None:
        routes = _Routes({"me/friends": {"data": [{"name": "nobody"}]}})
        with self.assertRaises(StructuralError):
            FriendOperations(routes.graph()).get_friend_ids()

    def test_family(self) -> None:
        routes = _Routes({"me/family": {"data": [{"id": "3", "name": "Sam", "relationship": "brother"}]}})
        family = FriendOperations(routes.graph()).get_family()
        self.assertEqual(family[0].relationship, "brother")

    def test_friend_profiles_use_profile_fields(self) -> None:
        routes = _Routes({"me/friends": {"data": [{"id": "3", "name": "Sam"}]}})
        profiles = FriendOperations(routes.graph()).get_friend_profiles()
        self.assertEqual(profiles[0].name, "Sam")
        self.assertEqual(routes.requests[0].url.params.get("limit"), "25")
        self.assertIn("birthday", routes.requests[0].url.params.get("fields", ""))

    def test_require_authorization(self) -> None:
        with self.assertRaises(MissingAuthorizationError):
            FriendOperations(_Routes({}).graph(token=None)).get_friends()


if __name__ == "__main__":
    unittest.main()
