from __future__ import annotations

from .errors import ConfigError
from .graph_client import GraphClient


class OpenGraphOperations:
    """Publishing custom Open Graph actions under the app's namespace."""

    def __init__(self, graph: GraphClient, app_namespace: str | None = None) -> None:
        self._graph = graph
        self._namespace = app_namespace if app_namespace is not None else graph.app_namespace

    def publish_action(self, action: str, object_type: str, object_url: str) -> str:
        """
        POST me/<namespace>:<action> with <object_type>=<object_url>.

        Returns the id of the published action.
        """
        self._graph.require_authorization()
        if not self._namespace:
            raise ConfigError("An app namespace is required to publish Open Graph actions")
        return self._graph.publish("me", f"{self._namespace}:{action}", {object_type: object_url})
