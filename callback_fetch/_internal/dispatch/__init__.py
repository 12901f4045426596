"""Request dispatch for callback-fetch.

Composition (URL, headers, body), outcome routing and the data model shared
by the sync and async clients.
"""

from callback_fetch._internal.dispatch.compose import build_headers, encode_body, resolve_url
from callback_fetch._internal.dispatch.models import (
    BearerStyle,
    ErrorBody,
    FailureKind,
    FetchResponse,
    GenericStyle,
    HeaderStrategy,
    ProgressEvent,
    RequestConfig,
)
from callback_fetch._internal.dispatch.routing import classify_status, outcome_calls
from callback_fetch._internal.dispatch.signal import AbortSignal

__all__ = [
    "AbortSignal",
    "BearerStyle",
    "ErrorBody",
    "FailureKind",
    "FetchResponse",
    "GenericStyle",
    "HeaderStrategy",
    "ProgressEvent",
    "RequestConfig",
    "build_headers",
    "classify_status",
    "encode_body",
    "outcome_calls",
    "resolve_url",
]
