from __future__ import annotations

from .graph_client import GraphClient
from .feed import FeedOperations
from .friends import FriendOperations
from .open_graph import OpenGraphOperations
from .users import UserOperations


class Facebook:
    """One GraphClient shared by the feed, user, friend and Open Graph operations."""

    def __init__(self, graph: GraphClient) -> None:
        self.graph = graph
        self.feed = FeedOperations(graph)
        self.users = UserOperations(graph)
        self.friends = FriendOperations(graph)
        self.open_graph = OpenGraphOperations(graph)

    @property
    def is_authorized(self) -> bool:
        return self.graph.is_authorized

    def close(self) -> None:
        self.graph.close()

    def __enter__(self) -> "Facebook":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()
