from __future__ import annotations

from .config import config_sha256, load_config, resolve_runtime_secrets
from .config_schema import AppConfig
from .decode import decode_post, decode_post_list
from .errors import (
    ConfigError,
    FacebookError,
    GraphApiError,
    MissingAuthorizationError,
    StructuralError,
    ThresholdLimitReachedError,
    VariantDecodeError,
)
from .facebook import Facebook
from .graph_client import GraphClient, iter_pages
from .oauth import AccessGrant, FacebookOAuth2
from .paging import PagedList, PagingParameters, parse_paging_node, render_query_parameters

__all__ = [
    "AccessGrant",
    "AppConfig",
    "ConfigError",
    "Facebook",
    "FacebookError",
    "FacebookOAuth2",
    "GraphApiError",
    "GraphClient",
    "MissingAuthorizationError",
    "PagedList",
    "PagingParameters",
    "StructuralError",
    "ThresholdLimitReachedError",
    "VariantDecodeError",
    "config_sha256",
    "decode_post",
    "decode_post_list",
    "iter_pages",
    "load_config",
    "parse_paging_node",
    "render_query_parameters",
    "resolve_runtime_secrets",
]
