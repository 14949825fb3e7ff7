from __future__ import annotations

from typing import Any, Mapping

from .decode import data_records
from .errors import StructuralError
from .graph_client import GraphClient
from .models import FamilyMember, User
from .paging import FIRST_PAGE, PagedList, PagingParameters
from .post_schema import Reference
from .users import PROFILE_FIELDS


def _entry_id(entry: Any, index: int) -> str:
    if isinstance(entry, Mapping):
        value = entry.get("id")
        if isinstance(value, (str, int)) and not isinstance(value, bool):
            return str(value)
    raise StructuralError(f"Entry {index} of 'data' has no id")


class FriendOperations:
    def __init__(self, graph: GraphClient) -> None:
        self._graph = graph

    def get_friend_lists(self) -> PagedList[Reference]:
        self._graph.require_authorization()
        return self._graph.fetch_connections("me", "friendlists", Reference)

    def get_friend_list(self, friend_list_id: str) -> Reference:
        self._graph.require_authorization()
        return self._graph.fetch_object(friend_list_id, Reference)

    def get_friends(self, user_id: str = "me") -> PagedList[Reference]:
        self._graph.require_authorization()
        return self._graph.fetch_connections(user_id, "friends", Reference)

    def get_friend_ids(self, user_id: str = "me") -> PagedList[str]:
        """Friend ids only; the result is a single page with no paging links."""
        self._graph.require_authorization()
        envelope = self._graph.fetch_envelope(f"{user_id}/friends", fields=("id",))
        records = data_records(envelope)
        return PagedList(items=tuple(_entry_id(entry, i) for i, entry in enumerate(records)))

    def get_friend_profiles(self, user_id: str = "me", paging: PagingParameters = FIRST_PAGE) -> PagedList[User]:
        self._graph.require_authorization()
        return self._graph.fetch_connections(user_id, "friends", User, paging=paging, fields=PROFILE_FIELDS)

    def get_family(self, user_id: str = "me") -> PagedList[FamilyMember]:
        self._graph.require_authorization()
        return self._graph.fetch_connections(user_id, "family", FamilyMember)

    def get_subscribed_to(self, user_id: str = "me") -> PagedList[Reference]:
        self._graph.require_authorization()
        return self._graph.fetch_connections(user_id, "subscribedTo", Reference)

    def get_subscribers(self, user_id: str = "me") -> PagedList[Reference]:
        self._graph.require_authorization()
        return self._graph.fetch_connections(user_id, "subscribers", Reference)
