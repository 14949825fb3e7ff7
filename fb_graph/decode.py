from __future__ import annotations

from typing import Any, Mapping, Sequence, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import StructuralError, VariantDecodeError
from .paging import PagedList, PagingParameters, parse_paging_node
from .post_schema import FALLBACK_VARIANT, POST_VARIANTS, Post

M = TypeVar("M", bound=BaseModel)


def _format_validation_errors(err: ValidationError, label: str) -> str:
    lines: list[str] = [f"Failed to decode {label}:"]
    for item in err.errors():
        loc = ".".join(str(part) for part in item.get("loc", [])) or "<root>"
        msg = item.get("msg", "invalid value")
        lines.append(f"- {loc}: {msg}")
    return "\n".join(lines)


def data_records(envelope: Any) -> Sequence[Any]:
    if not isinstance(envelope, Mapping):
        raise StructuralError(f"Connection envelope must be an object, got {type(envelope).__name__}")
    data = envelope.get("data")
    if data is None:
        raise StructuralError("Connection envelope has no 'data' field")
    if not isinstance(data, list):
        raise StructuralError(f"Connection envelope 'data' must be a list, got {type(data).__name__}")
    return data


def _record(raw: Any, index: int) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise StructuralError(f"Entry {index} of 'data' must be an object, got {type(raw).__name__}")
    return raw


def page_links(envelope: Mapping[str, Any]) -> tuple[PagingParameters | None, PagingParameters | None]:
    # A malformed cursor fails the whole page; there is no partial result.
    return parse_paging_node(envelope, "previous"), parse_paging_node(envelope, "next")


def known_variant(tag: str) -> str | None:
    key = (tag or "").strip().casefold()
    return key if key in POST_VARIANTS else None


def resolve_variant_tag(record: Mapping[str, Any], post_type: str | None = None) -> str:
    """
    Pick the post variant a record decodes into.

    An explicit `post_type` wins. Otherwise the record's own `type` is used
    when it names a known variant; anything else decodes as a generic post.
    """
    if post_type is not None:
        forced = known_variant(post_type)
        if forced is None:
            raise ValueError(f"Unknown post variant: {post_type!r}")
        return forced

    raw_type = record.get("type")
    if isinstance(raw_type, str):
        return known_variant(raw_type) or FALLBACK_VARIANT
    return FALLBACK_VARIANT


def _is_populated(entry: Any) -> bool:
    if entry is None:
        return False
    if isinstance(entry, Mapping):
        return any(v is not None and v != "" for v in entry.values())
    if isinstance(entry, str):
        return bool(entry.strip())
    return True


def contains_content(record: Mapping[str, Any], key: str) -> bool:
    """
    True when record[key] is a connection node with at least one real entry.

    The API sends an empty {"data": []} shell even when nothing is there, so
    the key alone proves nothing.
    """
    node = record.get(key)
    if not isinstance(node, Mapping):
        return False
    data = node.get("data")
    if not isinstance(data, list):
        return False
    return any(_is_populated(entry) for entry in data)


def augment_record(record: Mapping[str, Any], variant_tag: str) -> dict[str, Any]:
    """Return a copy of `record` with the computed fields the post models expect."""
    out = dict(record)
    out["post_type"] = variant_tag
    out["has_likes"] = contains_content(record, "likes")
    out["has_comments"] = contains_content(record, "comments")
    return out


def decode_post(record: Mapping[str, Any], post_type: str | None = None) -> Post:
    tag = resolve_variant_tag(record, post_type)
    model = POST_VARIANTS[tag]
    try:
        return model.model_validate(augment_record(record, tag))
    except ValidationError as e:
        raise VariantDecodeError(
            _format_validation_errors(e, f"{tag} post {record.get('id')!r}"),
            variant_tag=tag,
            raw_record=record,
        ) from e


def decode_post_list(envelope: Mapping[str, Any], post_type: str | None = None) -> PagedList[Post]:
    """
    Decode a feed-style connection envelope into a page of typed posts.

    One undecodable record fails the whole page; there are no partial pages.
    """
    records = data_records(envelope)
    posts = [decode_post(_record(raw, i), post_type) for i, raw in enumerate(records)]
    previous_page, next_page = page_links(envelope)
    return PagedList(items=tuple(posts), previous_page=previous_page, next_page=next_page)


def decode_object(record: Mapping[str, Any], model: type[M]) -> M:
    try:
        return model.model_validate(record)
    except ValidationError as e:
        raise VariantDecodeError(
            _format_validation_errors(e, model.__name__),
            variant_tag=model.__name__,
            raw_record=record,
        ) from e


def decode_list(envelope: Mapping[str, Any], model: type[M]) -> PagedList[M]:
    """Decode a connection envelope whose entries all share one model."""
    records = data_records(envelope)
    items = [decode_object(_record(raw, i), model) for i, raw in enumerate(records)]
    previous_page, next_page = page_links(envelope)
    return PagedList(items=tuple(items), previous_page=previous_page, next_page=next_page)
