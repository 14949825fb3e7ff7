from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Iterator, Literal, Mapping, Sequence, TypeVar, overload
from urllib.parse import parse_qsl, urlsplit

from .errors import StructuralError

T = TypeVar("T")

Direction = Literal["previous", "next"]

PAGING_TOKEN_PARAM = "__paging_token"

_INT_FIELDS = ("limit", "since", "until", "offset")


@dataclass(frozen=True)
class PagingParameters:
    """
    Query parameters selecting one page of a Graph API connection.

    Cursor fields (after/before/paging_token) and time/offset fields are not
    exclusive here; the API honors whichever set it receives.
    """

    limit: int | None = None
    since: int | None = None
    until: int | None = None
    after: str | None = None
    before: str | None = None
    paging_token: str | None = None
    offset: int | None = None


FIRST_PAGE = PagingParameters(limit=25)


@dataclass(frozen=True)
class PagedList(Sequence[T], Generic[T]):
    """One page of items, in server order, plus the parameters for its neighbours."""

    items: tuple[T, ...] = ()
    previous_page: PagingParameters | None = None
    next_page: PagingParameters | None = None

    def __len__(self) -> int:
        return len(self.items)

    @overload
    def __getitem__(self, index: int) -> T: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[T, ...]: ...

    def __getitem__(self, index: int | slice) -> T | tuple[T, ...]:
        return self.items[index]

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    @property
    def has_next(self) -> bool:
        return self.next_page is not None

    @property
    def has_previous(self) -> bool:
        return self.previous_page is not None


def _cursor_query(cursor: str) -> str:
    value = cursor.strip()
    try:
        parts = urlsplit(value)
    except ValueError as e:
        raise StructuralError(f"Malformed paging cursor URL: {cursor!r}") from e
    # A scheme, host, leading "/" or "?" marks a URL; anything else is a bare query string.
    if parts.scheme or parts.netloc or value.startswith("/") or "?" in value:
        return parts.query
    return value


def _parse_int(name: str, raw: str, cursor: str) -> int:
    try:
        return int(raw)
    except ValueError as e:
        raise StructuralError(f"Paging cursor has non-integer {name}={raw!r}: {cursor!r}") from e


def parse_cursor(cursor: str) -> PagingParameters:
    """
    Extract the recognized paging parameters from a cursor URL or bare query string.

    Parameters missing from the cursor are left unset; unrecognized ones are ignored.
    """
    # Valueless keys ("pretty", "limit=") carry nothing and are dropped.
    pairs = parse_qsl(_cursor_query(cursor))

    found: dict[str, str] = {}
    for key, value in pairs:
        found.setdefault(key, value)

    values: dict[str, Any] = {}
    for name in _INT_FIELDS:
        if name in found:
            values[name] = _parse_int(name, found[name], cursor)
    for name in ("after", "before"):
        if name in found:
            values[name] = found[name]
    if PAGING_TOKEN_PARAM in found:
        values["paging_token"] = found[PAGING_TOKEN_PARAM]

    return PagingParameters(**values)


def parse_paging_node(envelope: Mapping[str, Any], direction: Direction) -> PagingParameters | None:
    """
    Read `paging.<direction>` from a connection envelope.

    Returns None when the envelope has no paging node or no cursor in that
    direction, meaning there is no page to fetch that way.
    """
    if direction not in ("previous", "next"):
        raise ValueError(f"direction must be 'previous' or 'next', got {direction!r}")

    paging = envelope.get("paging")
    if paging is None:
        return None
    if not isinstance(paging, Mapping):
        raise StructuralError(f"Envelope paging node must be an object, got {type(paging).__name__}")

    cursor = paging.get(direction)
    if cursor is None:
        return None
    if not isinstance(cursor, str):
        raise StructuralError(f"Paging cursor '{direction}' must be a string, got {type(cursor).__name__}")
    if not cursor.strip():
        return None

    return parse_cursor(cursor)


def render_query_parameters(params: PagingParameters) -> list[tuple[str, str]]:
    """Render the set fields of `params` as query pairs, in canonical order."""
    out: list[tuple[str, str]] = []
    if params.limit is not None:
        out.append(("limit", str(params.limit)))
    if params.since is not None:
        out.append(("since", str(params.since)))
    if params.until is not None:
        out.append(("until", str(params.until)))
    if params.after is not None:
        out.append(("after", params.after))
    if params.before is not None:
        out.append(("before", params.before))
    if params.paging_token is not None:
        out.append((PAGING_TOKEN_PARAM, params.paging_token))
    if params.offset is not None:
        out.append(("offset", str(params.offset)))
    return out
