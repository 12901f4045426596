"""Public models for callback-fetch.

    from callback_fetch.models import RequestConfig, FetchResponse

    config = RequestConfig(
        method="POST",
        base_url="https://api.example.com",
        end_point="/users",
        data={"name": "Ada"},
        on_success=lambda res: print(res.status),
    )
"""

from callback_fetch._internal.dispatch.models import (
    BearerStyle,
    ErrorBody,
    FailureKind,
    FetchResponse,
    GenericStyle,
    HeaderStrategy,
    Method,
    ProgressEvent,
    RequestConfig,
)

__all__ = [
    "BearerStyle",
    "ErrorBody",
    "FailureKind",
    "FetchResponse",
    "GenericStyle",
    "HeaderStrategy",
    "Method",
    "ProgressEvent",
    "RequestConfig",
]
