"""Outcome routing: status classification and failure callbacks."""

import json
from typing import Any

import httpx
from pydantic import ValidationError

from callback_fetch._internal.dispatch.models import (
    ErrorBody,
    FailureKind,
    FetchResponse,
    RequestConfig,
)

_STATUS_KINDS: dict[int, FailureKind] = {
    500: FailureKind.SERVER_ERROR,
    401: FailureKind.UNAUTHENTICATED,
    403: FailureKind.FORBIDDEN,
}


def classify_status(status: int) -> FailureKind:
    """Map a failed response's status code to its FailureKind."""
    return _STATUS_KINDS.get(status, FailureKind.GENERIC)


def parse_body(body: bytes, encoding: str | None = None) -> Any:
    """Parse a response body as JSON, falling back to text, or None if empty."""
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        pass
    try:
        return body.decode(encoding or "utf-8", errors="replace")
    except LookupError:
        # unknown charset label from the server
        return body.decode("utf-8", errors="replace")


def to_fetch_response(response: httpx.Response, body: bytes) -> FetchResponse:
    """Convert a response and its already read body into a FetchResponse."""
    return FetchResponse(
        status=response.status_code,
        headers=dict(response.headers),
        data=parse_body(body, response.charset_encoding),
        url=str(response.url),
    )


def extract_error(response: FetchResponse) -> Any:
    """Return the `error` field of an error body, or None if absent."""
    if not isinstance(response.data, dict):
        return None
    try:
        return ErrorBody.model_validate(response.data).error
    except ValidationError:
        return None


def failure_calls(config: RequestConfig, response: FetchResponse) -> list[tuple[Any, tuple[Any, ...]]]:
    """List the callbacks to run for a failed response, in order.

    on_error comes first; the status-specific callback, if any, follows it.
    Missing callbacks are skipped.
    """
    calls: list[tuple[Any, tuple[Any, ...]]] = []
    if config.on_error is not None:
        calls.append((config.on_error, (extract_error(response), response)))

    kind = classify_status(response.status)
    if kind is FailureKind.SERVER_ERROR and config.on_server_error is not None:
        calls.append((config.on_server_error, (response,)))
    if kind is FailureKind.UNAUTHENTICATED and config.on_unauthenticated is not None:
        calls.append((config.on_unauthenticated, (response,)))
    if kind is FailureKind.FORBIDDEN and config.on_forbidden is not None:
        calls.append((config.on_forbidden, (response,)))
    return calls


def outcome_calls(config: RequestConfig, response: FetchResponse) -> list[tuple[Any, tuple[Any, ...]]]:
    """List the callbacks to run for a settled response."""
    if response.ok:
        if config.on_success is None:
            return []
        return [(config.on_success, (response,))]
    return failure_calls(config, response)
