from __future__ import annotations

from .decode import decode_list
from .graph_client import GraphClient
from .models import CoverPhoto, ImageType, Permission, PlaceTag, User, UserIdForApp
from .paging import PagedList
from .post_schema import Reference

PROFILE_FIELDS: tuple[str, ...] = (
    "id",
    "about",
    "bio",
    "birthday",
    "education",
    "email",
    "first_name",
    "gender",
    "hometown",
    "interested_in",
    "last_name",
    "link",
    "locale",
    "location",
    "middle_name",
    "name",
    "political",
    "quotes",
    "relationship_status",
    "religion",
    "significant_other",
    "third_party_id",
    "timezone",
    "updated_time",
    "verified",
    "website",
    "work",
)


class UserOperations:
    def __init__(self, graph: GraphClient) -> None:
        self._graph = graph

    def get_user_profile(self, user_id: str = "me") -> User:
        return self._graph.fetch_object(user_id, User, fields=PROFILE_FIELDS)

    def get_user_profile_image_url(self, user_id: str = "me", image_type: ImageType = "normal") -> str:
        return self._graph.fetch_image_url(user_id, "picture", image_type)

    def get_user_permissions(self) -> list[str]:
        """Names of the permissions currently granted to the access token, in response order."""
        self._graph.require_authorization()
        envelope = self._graph.fetch_envelope("me/permissions")
        return [p.permission for p in decode_list(envelope, Permission) if p.is_granted]

    def get_permission_details(self) -> PagedList[Permission]:
        self._graph.require_authorization()
        return self._graph.fetch_connections("me", "permissions", Permission)

    def get_ids_for_business(self) -> PagedList[UserIdForApp]:
        self._graph.require_authorization()
        return self._graph.fetch_connections("me", "ids_for_business", UserIdForApp)

    def get_tagged_places(self) -> PagedList[PlaceTag]:
        self._graph.require_authorization()
        return self._graph.fetch_connections("me", "tagged_places", PlaceTag)

    def get_cover_photo(self, user_id: str = "me") -> CoverPhoto:
        return self._graph.fetch_object(user_id, CoverPhoto, fields=("cover",))

    def search(self, query: str) -> PagedList[Reference]:
        return self._graph.fetch_connections("search", None, Reference, params={"q": query, "type": "user"})
