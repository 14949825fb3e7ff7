from __future__ import annotations

import json
from typing import Any

import httpx

OFFLINE_ACCESS_TOKEN = "offline-token"

_OFFLINE_BASE = "https://graph.facebook.com/v2.3"

_OFFLINE_PROFILE: dict[str, Any] = {
    "id": "100001",
    "name": "Offline User",
    "first_name": "Offline",
    "last_name": "User",
    "locale": "en_US",
    "link": "https://www.facebook.com/offline.user",
    "timezone": 0,
    "verified": True,
    "updated_time": "2015-03-01T12:00:00+0000",
    "hometown": {"id": "108", "name": "Springfield"},
}

_OFFLINE_POSTS_PAGE_1: list[dict[str, Any]] = [
    {
        "id": "100001_1",
        "type": "status",
        "from": {"id": "100001", "name": "Offline User"},
        "message": "Trying out the Graph API client.",
        "created_time": "2015-03-02T09:00:00+0000",
        "likes": {"data": [{"id": "200", "name": "Friend"}]},
        "comments": {"data": []},
    },
    {
        "id": "100001_2",
        "type": "link",
        "from": {"id": "100001", "name": "Offline User"},
        "link": "https://example.com/article",
        "name": "An article",
        "created_time": "2015-03-02T10:00:00+0000",
        "shares": {"count": 3},
    },
]

_OFFLINE_POSTS_PAGE_2: list[dict[str, Any]] = [
    {
        "id": "100001_3",
        "type": "photo",
        "from": {"id": "100001", "name": "Offline User"},
        "object_id": "555",
        "picture": "https://example.com/p.jpg",
        "created_time": "2015-03-03T08:00:00+0000",
        "comments": {"data": [{"id": "c1", "message": "Nice"}]},
    },
    {
        "id": "100001_4",
        "type": "hologram",
        "from": {"id": "100001", "name": "Offline User"},
        "story": "Offline User shared something new.",
        "created_time": "2015-03-03T09:00:00+0000",
    },
]

_PAGE_2_CURSOR = "OFFLINE_PAGE_2"


def _json(status_code: int, payload: Any) -> httpx.Response:
    return httpx.Response(
        status_code,
        content=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json"},
    )


def _feed_response(request: httpx.Request, path: str) -> httpx.Response:
    if request.url.params.get("after") == _PAGE_2_CURSOR:
        return _json(
            200,
            {
                "data": _OFFLINE_POSTS_PAGE_2,
                "paging": {"previous": f"{_OFFLINE_BASE}/{path}?limit=2&before=OFFLINE_PAGE_1"},
            },
        )
    return _json(
        200,
        {
            "data": _OFFLINE_POSTS_PAGE_1,
            "paging": {"next": f"{_OFFLINE_BASE}/{path}?limit=2&after={_PAGE_2_CURSOR}"},
        },
    )


def _offline_handler(request: httpx.Request) -> httpx.Response:
    parts = [p for p in request.url.path.split("/") if p]
    # Drop the version segment (v2.3).
    if parts and parts[0].startswith("v"):
        parts = parts[1:]

    if len(parts) == 1:
        return _json(200, {**_OFFLINE_PROFILE, "id": _OFFLINE_PROFILE["id"] if parts[0] == "me" else parts[0]})

    if len(parts) == 2 and parts[1] == "picture":
        return _json(200, {"data": {"url": "https://example.com/offline-avatar.jpg", "is_silhouette": False}})

    if len(parts) == 2 and parts[1] in ("feed", "home", "posts", "statuses", "links", "tagged"):
        return _feed_response(request, "/".join(parts))

    return _json(
        404,
        {"error": {"message": "(#803) Some of the aliases you requested do not exist", "type": "OAuthException", "code": 803}},
    )


def offline_http_client() -> httpx.Client:
    """An httpx client that answers Graph requests from canned data, without network access."""
    return httpx.Client(transport=httpx.MockTransport(_offline_handler))
