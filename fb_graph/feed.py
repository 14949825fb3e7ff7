from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from .decode import decode_post
from .errors import StructuralError
from .graph_client import GraphClient
from .paging import FIRST_PAGE, PagedList, PagingParameters
from .post_schema import Post

# likes/comments are capped at one entry: enough to compute has_likes/has_comments.
POST_FIELDS: tuple[str, ...] = (
    "id",
    "likes.limit(1)",
    "comments.limit(1)",
    "from",
    "to",
    "message",
    "story",
    "story_tags",
    "picture",
    "link",
    "source",
    "name",
    "caption",
    "description",
    "icon",
    "actions",
    "privacy",
    "type",
    "status_type",
    "object_id",
    "place",
    "shares",
    "with_tags",
    "application",
    "created_time",
    "updated_time",
    "is_hidden",
    "subscribed",
    "is_expired",
    "attachments",
)


@dataclass(frozen=True)
class FacebookLink:
    link: str
    name: str | None = None
    caption: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class PostData:
    """Parameters for publishing a post to a feed."""

    target_feed_id: str = "me"
    message: str | None = None
    link: str | None = None
    name: str | None = None
    caption: str | None = None
    description: str | None = None
    picture: str | None = None
    place: str | None = None
    tags: Sequence[str] = field(default_factory=tuple)
    privacy: str | None = None
    published: bool | None = None

    def to_request_parameters(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "message": self.message,
            "link": self.link,
            "name": self.name,
            "caption": self.caption,
            "description": self.description,
            "picture": self.picture,
            "place": self.place,
        }
        if self.tags:
            params["tags"] = ",".join(self.tags)
        if self.privacy:
            params["privacy"] = json.dumps({"value": self.privacy.upper()}, separators=(",", ":"))
        if self.published is not None:
            params["published"] = "true" if self.published else "false"
        return {k: v for k, v in params.items() if v is not None}


class FeedOperations:
    """Reading and publishing feed entries."""

    def __init__(self, graph: GraphClient) -> None:
        self._graph = graph

    def get_feed(self, owner_id: str = "me", paging: PagingParameters = FIRST_PAGE) -> PagedList[Post]:
        self._graph.require_authorization()
        return self._graph.fetch_posts(f"{owner_id}/feed", paging=paging, fields=POST_FIELDS)

    def get_home_feed(self, paging: PagingParameters = FIRST_PAGE) -> PagedList[Post]:
        self._graph.require_authorization()
        return self._graph.fetch_posts("me/home", paging=paging)

    def get_statuses(self, owner_id: str = "me", paging: PagingParameters = FIRST_PAGE) -> PagedList[Post]:
        self._graph.require_authorization()
        return self._graph.fetch_posts(f"{owner_id}/statuses", post_type="status", paging=paging)

    def get_links(self, owner_id: str = "me", paging: PagingParameters = FIRST_PAGE) -> PagedList[Post]:
        self._graph.require_authorization()
        return self._graph.fetch_posts(f"{owner_id}/links", post_type="link", paging=paging)

    def get_posts(self, owner_id: str = "me", paging: PagingParameters = FIRST_PAGE) -> PagedList[Post]:
        self._graph.require_authorization()
        return self._graph.fetch_posts(f"{owner_id}/posts", paging=paging, fields=POST_FIELDS)

    def get_tagged(self, owner_id: str = "me", paging: PagingParameters = FIRST_PAGE) -> PagedList[Post]:
        self._graph.require_authorization()
        return self._graph.fetch_posts(f"{owner_id}/tagged", paging=paging, fields=POST_FIELDS)

    def get_post(self, entry_id: str) -> Post:
        body = self._graph.fetch_envelope(entry_id)
        if not isinstance(body, Mapping):
            raise StructuralError(f"Expected a post object for {entry_id!r}, got {type(body).__name__}")
        return decode_post(body)

    def get_checkins(self, paging: PagingParameters = PagingParameters(limit=25, offset=0)) -> PagedList[Post]:
        self._graph.require_authorization()
        return self._graph.fetch_posts("me/posts", params={"with": "location"}, paging=paging)

    def search_home_feed(self, query: str, paging: PagingParameters = FIRST_PAGE) -> PagedList[Post]:
        self._graph.require_authorization()
        return self._graph.fetch_posts("me/home", params={"q": query}, paging=paging)

    def search_user_feed(
        self, query: str, owner_id: str = "me", paging: PagingParameters = FIRST_PAGE
    ) -> PagedList[Post]:
        self._graph.require_authorization()
        return self._graph.fetch_posts(f"{owner_id}/feed", params={"q": query}, paging=paging)

    def search_public_feed(self, query: str, paging: PagingParameters = FIRST_PAGE) -> PagedList[Post]:
        # Public search only honors the time-window fields.
        window = PagingParameters(limit=paging.limit, since=paging.since, until=paging.until)
        return self._graph.fetch_posts("search", params={"q": query, "type": "post"}, paging=window)

    def update_status(self, message: str) -> str:
        return self.post(PostData(message=message))

    def post_link(self, message: str, link: FacebookLink, owner_id: str = "me") -> str:
        return self.post(
            PostData(
                target_feed_id=owner_id,
                message=message,
                link=link.link,
                name=link.name,
                caption=link.caption,
                description=link.description,
            )
        )

    def post(self, data: PostData) -> str:
        self._graph.require_authorization()
        return self._graph.publish(data.target_feed_id, "feed", data.to_request_parameters())

    def delete_post(self, post_id: str) -> bool:
        self._graph.require_authorization()
        return self._graph.delete(post_id)
