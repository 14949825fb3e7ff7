from __future__ import annotations

from typing import Any, Callable, Iterator, Mapping, Sequence, TypeVar

import httpx
from pydantic import BaseModel

from .app_usage import parse_app_usage, threshold_reached
from .config import RuntimeSecrets, retry_policy
from .config_schema import AppConfig
from .decode import decode_list, decode_object, decode_post_list
from .errors import MissingAuthorizationError, ThresholdLimitReachedError, UncategorizedApiError
from .graph_errors import error_from_body, error_from_response_text
from .graph_retry import classify_graph_exception, parse_retry_after
from .paging import PagedList, PagingParameters, render_query_parameters
from .post_schema import Post
from .retry import RetryEvent, RetryPolicy, SleepFn, call_with_retries
from .run_log import RunLogger

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")

DEFAULT_BASE_URL = "https://graph.facebook.com"
DEFAULT_API_VERSION = "v2.3"
USER_AGENT = "fb-graph-python/0.1"

QueryParams = Sequence[tuple[str, str]]

_DEFAULT_RETRY = RetryPolicy()


def build_query(
    params: Mapping[str, Any] | QueryParams | None = None,
    *,
    paging: PagingParameters | None = None,
    fields: Sequence[str] = (),
) -> list[tuple[str, str]]:
    """
    Assemble request query pairs: paging first (canonical order), then the
    caller's parameters, then a comma-joined `fields` list.
    """
    out: list[tuple[str, str]] = []
    if paging is not None:
        out.extend(render_query_parameters(paging))

    items = params.items() if isinstance(params, Mapping) else (params or ())
    for key, value in items:
        if value is None:
            continue
        out.append((str(key), str(value)))

    if fields:
        out = [(k, v) for k, v in out if k != "fields"]
        out.append(("fields", ",".join(fields)))
    return out


class GraphClient:
    """
    Thin synchronous transport for the Graph API.

    Every request carries the access token in an `Authorization: OAuth` header,
    has its X-App-Usage header checked against the usage threshold, and has
    error payloads translated into the GraphApiError taxonomy. Transient
    failures are retried according to `retry`.
    """

    def __init__(
        self,
        access_token: str | None = None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        api_version: str = DEFAULT_API_VERSION,
        timeout_seconds: float = 30.0,
        usage_threshold: int = 80,
        app_namespace: str | None = None,
        retry: RetryPolicy | None = None,
        logger: RunLogger | None = None,
        http_client: httpx.Client | None = None,
        owns_http: bool | None = None,
        sleep_fn: SleepFn | None = None,
    ) -> None:
        self._access_token = (access_token or "").strip() or None
        self._base_url = base_url.rstrip("/")
        self._api_version = api_version.strip("/")
        self._usage_threshold = int(usage_threshold)
        self.app_namespace = app_namespace
        self._retry = retry or _DEFAULT_RETRY
        self._log = logger
        self._sleep_fn = sleep_fn

        # close() shuts the httpx client only when this instance owns it.
        self._owns_http = http_client is None if owns_http is None else owns_http
        self._http = http_client or httpx.Client(
            timeout=timeout_seconds,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        )

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        secrets: RuntimeSecrets,
        *,
        logger: RunLogger | None = None,
        http_client: httpx.Client | None = None,
        owns_http: bool | None = None,
        sleep_fn: SleepFn | None = None,
    ) -> "GraphClient":
        return cls(
            secrets.access_token,
            base_url=config.graph.base_url,
            api_version=config.graph.api_version,
            timeout_seconds=config.graph.timeout_seconds,
            usage_threshold=config.rate_limit.threshold_percentage,
            app_namespace=config.graph.app_namespace,
            retry=retry_policy(config),
            logger=logger,
            http_client=http_client,
            owns_http=owns_http,
            sleep_fn=sleep_fn,
        )

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "GraphClient":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    @property
    def is_authorized(self) -> bool:
        return self._access_token is not None

    def require_authorization(self) -> None:
        if not self.is_authorized:
            raise MissingAuthorizationError("facebook")

    def graph_url(self, path: str) -> str:
        return f"{self._base_url}/{self._api_version}/{path.lstrip('/')}"

    # raw requests

    def request(
        self,
        method: str,
        path: str,
        *,
        params: QueryParams | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> Any:
        """Send one request (with retries) and return the decoded JSON body."""
        verb = method.upper()
        url = self.graph_url(path)

        def _on_retry(event: RetryEvent) -> None:
            if self._log is not None:
                self._log.warning(
                    "graph_retry",
                    url=url,
                    method=verb,
                    failed_attempt=event.failed_attempt,
                    max_attempts=event.max_attempts,
                    delay_seconds=round(event.delay_seconds, 3),
                    reason=event.reason,
                    error_type=event.error_type,
                )

        return call_with_retries(
            lambda: self._send_once(verb, url, params=params, data=data),
            policy=self._retry,
            classify=classify_graph_exception,
            operation=f"graph.{verb.lower()}:{path}",
            on_retry=_on_retry,
            sleep_fn=self._sleep_fn,
        )

    def _send_once(
        self,
        method: str,
        url: str,
        *,
        params: QueryParams | None,
        data: Mapping[str, Any] | None,
    ) -> Any:
        headers: dict[str, str] = {}
        if self._access_token is not None:
            headers["Authorization"] = f"OAuth {self._access_token}"

        if self._log is not None:
            self._log.debug("graph_request", url=url, method=method, params=dict(params or ()))

        response = self._http.request(
            method,
            url,
            params=list(params) if params else None,
            data=dict(data) if data else None,
            headers=headers,
        )

        if self._log is not None:
            self._log.debug("graph_response", url=url, method=method, status_code=response.status_code)

        self._check_app_usage(response, url)

        if response.status_code >= 400:
            err = error_from_response_text(response.text, status_code=response.status_code)
            err.retry_after_seconds = parse_retry_after(response.headers)
            if self._log is not None:
                self._log.error(
                    "graph_error",
                    url=url,
                    method=method,
                    status_code=response.status_code,
                    error_type=type(err).__name__,
                    code=err.code,
                    subcode=err.subcode,
                    fbtrace_id=err.fbtrace_id,
                )
            raise err

        try:
            body = response.json()
        except ValueError as e:
            raise UncategorizedApiError(
                f"Graph API returned a non-JSON body for {method} {url}",
                status_code=response.status_code,
            ) from e

        err = error_from_body(body, status_code=response.status_code)
        if err is not None:
            raise err
        return body

    def _check_app_usage(self, response: httpx.Response, url: str) -> None:
        usage = parse_app_usage(response.headers)
        if not threshold_reached(usage, self._usage_threshold):
            return
        if self._log is not None:
            self._log.warning(
                "app_usage_threshold_reached",
                url=url,
                usage=usage,
                threshold_percentage=self._usage_threshold,
            )
        raise ThresholdLimitReachedError(usage)

    # typed helpers

    def fetch_envelope(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | QueryParams | None = None,
        paging: PagingParameters | None = None,
        fields: Sequence[str] = (),
    ) -> Any:
        query = build_query(params, paging=paging, fields=fields)
        return self.request("GET", path, params=query)

    def fetch_object(self, object_id: str, model: type[M], *, fields: Sequence[str] = ()) -> M:
        body = self.fetch_envelope(object_id, fields=fields)
        if not isinstance(body, Mapping):
            raise UncategorizedApiError(f"Expected a JSON object for {object_id!r}, got {type(body).__name__}")
        return decode_object(body, model)

    def fetch_connections(
        self,
        object_id: str,
        connection: str | None,
        model: type[M],
        *,
        params: Mapping[str, Any] | QueryParams | None = None,
        paging: PagingParameters | None = None,
        fields: Sequence[str] = (),
    ) -> PagedList[M]:
        path = f"{object_id}/{connection}" if connection else object_id
        envelope = self.fetch_envelope(path, params=params, paging=paging, fields=fields)
        return decode_list(envelope, model)

    def fetch_posts(
        self,
        path: str,
        *,
        post_type: str | None = None,
        params: Mapping[str, Any] | QueryParams | None = None,
        paging: PagingParameters | None = None,
        fields: Sequence[str] = (),
    ) -> PagedList[Post]:
        envelope = self.fetch_envelope(path, params=params, paging=paging, fields=fields)
        return decode_post_list(envelope, post_type)

    def fetch_image_url(self, object_id: str, connection: str = "picture", image_type: str = "normal") -> str:
        body = self.fetch_envelope(
            f"{object_id}/{connection}",
            params=[("type", image_type), ("redirect", "false")],
        )
        data = body.get("data") if isinstance(body, Mapping) else None
        url = data.get("url") if isinstance(data, Mapping) else None
        if not isinstance(url, str) or not url.strip():
            raise UncategorizedApiError(f"Image response for {object_id!r} has no data.url")
        return url

    def post_for_object(self, object_id: str, connection: str, data: Mapping[str, Any]) -> Any:
        """POST form data to a connection and return the decoded body as-is."""
        payload = {k: str(v) for k, v in data.items() if v is not None}
        return self.request("POST", f"{object_id}/{connection}", data=payload)

    def publish(self, object_id: str, connection: str, data: Mapping[str, Any]) -> str:
        """POST to a connection and return the id of the created object."""
        body = self.post_for_object(object_id, connection, data)
        new_id = body.get("id") if isinstance(body, Mapping) else None
        if not isinstance(new_id, (str, int)) or isinstance(new_id, bool):
            raise UncategorizedApiError(f"Publish to {object_id}/{connection} returned no id")
        return str(new_id)

    def delete(self, object_id: str) -> bool:
        body = self.request("DELETE", object_id)
        if isinstance(body, Mapping):
            return bool(body.get("success", False))
        return bool(body)


def iter_pages(
    fetch_page: Callable[[PagingParameters], PagedList[T]],
    first_page: PagingParameters,
    *,
    max_pages: int | None = None,
) -> Iterator[PagedList[T]]:
    """
    Walk a connection forward: fetch, yield, then follow `next_page` until it
    is absent or `max_pages` pages have been yielded.
    """
    params: PagingParameters | None = first_page
    fetched = 0
    while params is not None:
        if max_pages is not None and fetched >= max_pages:
            return
        page = fetch_page(params)
        fetched += 1
        yield page
        params = page.next_page
