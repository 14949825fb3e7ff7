from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Graph timestamps look like 2011-02-07T16:42:36+0000; pydantic wants +00:00.
_COMPACT_OFFSET_RE = re.compile(r"([+-]\d{2})(\d{2})$")


def graph_timestamp(value: Any) -> Any:
    if isinstance(value, str):
        return _COMPACT_OFFSET_RE.sub(r"\1:\2", value.strip())
    return value


def unwrap_data_list(value: Any) -> Any:
    """Connection fields arrive as {"data": [...]}; accept that and bare lists."""
    if value is None:
        return []
    if isinstance(value, dict):
        return value.get("data") or []
    return value


class GraphModel(BaseModel):
    """Base for every Graph object: unknown fields ignored, instances immutable."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


class Reference(GraphModel):
    id: str
    name: str | None = None


class Location(GraphModel):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    zip: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class Place(GraphModel):
    id: str
    name: str | None = None
    location: Location | None = None


class Action(GraphModel):
    name: str
    link: str


class Privacy(GraphModel):
    description: str | None = None
    value: str | None = None
    friends: str | None = None
    allow: str | None = None
    deny: str | None = None

    @field_validator("value", "friends", mode="before")
    @classmethod
    def _upper_enum(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper() or None
        return v


class StoryAttachment(GraphModel):
    type: str | None = None
    title: str | None = None
    description: str | None = None
    url: str | None = None
    media: dict[str, Any] | None = None
    target: dict[str, Any] | None = None
    subattachments: list["StoryAttachment"] = Field(default_factory=list)

    @field_validator("subattachments", mode="before")
    @classmethod
    def _unwrap_subattachments(cls, v: Any) -> Any:
        return unwrap_data_list(v)


class Post(GraphModel):
    """
    Fields common to every feed entry.

    `post_type` is the resolved variant tag; `type` is the raw value the API
    sent, kept even when it named a variant this client does not know.
    `has_likes` and `has_comments` are computed during decoding.
    """

    post_type: Literal["post"] = "post"

    id: str
    type: str | None = None
    from_: Reference | None = Field(default=None, alias="from")
    to: list[Reference] = Field(default_factory=list)
    with_tags: list[Reference] = Field(default_factory=list)

    message: str | None = None
    story: str | None = None
    picture: str | None = None
    link: str | None = None
    source: str | None = None
    name: str | None = None
    caption: str | None = None
    description: str | None = None
    icon: str | None = None
    object_id: str | None = None
    status_type: str | None = None

    actions: list[Action] = Field(default_factory=list)
    application: Reference | None = None
    privacy: Privacy | None = None
    place: Place | None = None
    attachments: list[StoryAttachment] = Field(default_factory=list)
    shares: int | None = None

    created_time: datetime | None = None
    updated_time: datetime | None = None

    is_hidden: bool = False
    is_expired: bool = False
    subscribed: bool = False

    has_likes: bool = False
    has_comments: bool = False

    @field_validator("type", mode="before")
    @classmethod
    def _raw_type_as_text(cls, v: Any) -> Any:
        # Unknown tags decode as a generic post; keep the raw value whatever its JSON type.
        if v is None or isinstance(v, str):
            return v
        return json.dumps(v) if isinstance(v, (dict, list)) else str(v)

    @field_validator("to", "with_tags", "attachments", mode="before")
    @classmethod
    def _unwrap_connections(cls, v: Any) -> Any:
        return unwrap_data_list(v)

    @field_validator("created_time", "updated_time", mode="before")
    @classmethod
    def _parse_timestamp(cls, v: Any) -> Any:
        return graph_timestamp(v)

    @field_validator("status_type", mode="before")
    @classmethod
    def _lower_status_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower() or None
        return v

    @field_validator("shares", mode="before")
    @classmethod
    def _share_count(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return v.get("count", 0)
        return v


class StatusPost(Post):
    post_type: Literal["status"] = "status"


class LinkPost(Post):
    post_type: Literal["link"] = "link"


class NotePost(Post):
    post_type: Literal["note"] = "note"


class PhotoPost(Post):
    post_type: Literal["photo"] = "photo"

    @property
    def photo_id(self) -> str | None:
        return self.object_id


class VideoPost(Post):
    post_type: Literal["video"] = "video"

    @property
    def video_id(self) -> str | None:
        return self.object_id


class CheckinPost(Post):
    post_type: Literal["checkin"] = "checkin"

    # A checkin without a place is a schema mismatch, not a lossy subtype.
    place: Place


class MusicPost(Post):
    post_type: Literal["music"] = "music"


class SwfPost(Post):
    post_type: Literal["swf"] = "swf"


class EventPost(Post):
    post_type: Literal["event"] = "event"


class OfferPost(Post):
    post_type: Literal["offer"] = "offer"


FALLBACK_VARIANT = "post"

POST_VARIANTS: dict[str, type[Post]] = {
    FALLBACK_VARIANT: Post,
    "status": StatusPost,
    "link": LinkPost,
    "note": NotePost,
    "photo": PhotoPost,
    "video": VideoPost,
    "checkin": CheckinPost,
    "music": MusicPost,
    "swf": SwfPost,
    "event": EventPost,
    "offer": OfferPost,
}
