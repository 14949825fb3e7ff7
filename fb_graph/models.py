from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator

from .post_schema import GraphModel, Place, Reference, graph_timestamp

ImageType = Literal["square", "small", "normal", "large"]


class EducationExperience(GraphModel):
    school: Reference | None = None
    year: Reference | None = None
    type: str | None = None
    concentration: list[Reference] = Field(default_factory=list)


class WorkEntry(GraphModel):
    employer: Reference | None = None
    position: Reference | None = None
    start_date: str | None = None
    end_date: str | None = None


class User(GraphModel):
    """A user profile as returned by /{user-id}."""

    id: str
    name: str | None = None
    first_name: str | None = None
    middle_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    gender: str | None = None
    locale: str | None = None
    link: str | None = None
    website: str | None = None
    about: str | None = None
    bio: str | None = None
    birthday: str | None = None
    quotes: str | None = None
    religion: str | None = None
    political: str | None = None
    relationship_status: str | None = None
    third_party_id: str | None = None
    timezone: float | None = None
    verified: bool | None = None
    updated_time: datetime | None = None

    location: Reference | None = None
    hometown: Reference | None = None
    significant_other: Reference | None = None
    interested_in: list[str] = Field(default_factory=list)
    education: list[EducationExperience] = Field(default_factory=list)
    work: list[WorkEntry] = Field(default_factory=list)

    @field_validator("updated_time", mode="before")
    @classmethod
    def _parse_timestamp(cls, v: Any) -> Any:
        return graph_timestamp(v)


class FamilyMember(GraphModel):
    id: str
    name: str | None = None
    relationship: str | None = None


class Permission(GraphModel):
    permission: str
    status: Literal["granted", "declined", "expired"]

    @property
    def is_granted(self) -> bool:
        return self.status == "granted"


class UserIdForApp(GraphModel):
    id: str
    app: Reference | None = None


class PlaceTag(GraphModel):
    id: str
    place: Place
    created_time: datetime | None = None

    @field_validator("created_time", mode="before")
    @classmethod
    def _parse_timestamp(cls, v: Any) -> Any:
        return graph_timestamp(v)


class CoverPhoto(GraphModel):
    """
    Profile cover photo.

    Accepts either the bare cover node or an object wrapping it under "cover",
    and either `id` or the older `cover_id`.
    """

    id: str
    source: str | None = None
    offset_x: int = 0
    offset_y: int = 0

    @model_validator(mode="before")
    @classmethod
    def _unwrap_cover(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        node = data.get("cover") if isinstance(data.get("cover"), dict) else data
        out = dict(node)
        if "id" not in out and "cover_id" in out:
            out["id"] = out["cover_id"]
        return out
