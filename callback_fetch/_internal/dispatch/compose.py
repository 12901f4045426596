"""Wire-level request composition: target URL, headers and JSON body."""

import json
from typing import TYPE_CHECKING, Any

import httpx

from callback_fetch.exceptions import FetchValidationError

if TYPE_CHECKING:
    from callback_fetch._internal.dispatch.models import HeaderStrategy

ACCEPT_JSON = "application/json"


def join_url(base_url: str | None, end_point: str | None) -> str:
    """Join a base URL and an end point with exactly one slash between them.

    Either part may be missing, in which case the other is returned as is.
    """
    if not base_url:
        return end_point or ""
    if not end_point:
        return base_url
    return base_url.rstrip("/") + "/" + end_point.lstrip("/")


def resolve_url(
    *,
    url: str | None = None,
    base_url: str | None = None,
    end_point: str | None = None,
) -> str:
    """Resolve the request target.

    An explicit url wins outright, even when empty; base_url and end_point
    are ignored then.
    Returns an empty string when nothing resolves.
    """
    if url is not None:
        return url
    return join_url(base_url, end_point)


def build_headers(strategy: "HeaderStrategy", method: str) -> httpx.Headers:
    """Build outgoing headers: Accept first, then the strategy's headers."""
    headers = httpx.Headers({"Accept": ACCEPT_JSON})
    strategy.apply(headers, method)
    return headers


def encode_body(data: Any) -> bytes | None:
    """Serialize data to JSON for every method, GET included.

    None means no body.
    """
    if data is None:
        return None
    try:
        return json.dumps(data).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise FetchValidationError(f"Request data is not JSON serializable: {e}") from e
