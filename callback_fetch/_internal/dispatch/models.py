"""Pydantic models for request dispatch.

A RequestConfig carries everything one dispatch needs: the target, the
header style, the JSON body, the abort signal and the callbacks that
receive the outcome.
"""

from collections.abc import Callable
from enum import Enum
from typing import Any, Literal

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from callback_fetch._internal.dispatch.compose import resolve_url
from callback_fetch._internal.dispatch.signal import AbortSignal

# =============================================================================
# Constants
# =============================================================================

JSON_MEDIA_TYPE = "application/json"
UPLOAD_CHUNK_SIZE = 64 * 1024  # 64KB

Method = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

# =============================================================================
# Header Strategies
# =============================================================================


class BearerStyle(BaseModel):
    """Bearer-token header style.

    Sends `Content-Type: application/json` for every method except GET and
    copies `authorization` verbatim into the `Authorization` header.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["bearer"] = "bearer"
    authorization: str | None = None

    def apply(self, headers: httpx.Headers, method: str) -> None:
        if method != "GET":
            headers["Content-Type"] = JSON_MEDIA_TYPE
        if self.authorization:
            headers["Authorization"] = self.authorization


class GenericStyle(BaseModel):
    """Generic header-collection style: every pair is copied unchanged."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["generic"] = "generic"
    headers: dict[str, str] = Field(default_factory=dict)

    def apply(self, headers: httpx.Headers, method: str) -> None:
        for key, value in self.headers.items():
            headers[key] = value


HeaderStrategy = BearerStyle | GenericStyle

# =============================================================================
# Transfer Models
# =============================================================================


class ProgressEvent(BaseModel):
    """Progress of an upload or download, reported once per chunk."""

    model_config = ConfigDict(frozen=True)

    loaded: int
    total: int | None = None
    bytes: int = 0
    upload: bool = False
    download: bool = False

    @property
    def progress(self) -> float | None:
        """Fraction transferred, or None when the total size is unknown."""
        if not self.total:
            return None
        return self.loaded / self.total


class FetchResponse(BaseModel):
    """Server response handed to success and error callbacks.

    `data` holds the parsed JSON body, the text body when it is not JSON,
    or None when the body is empty.
    """

    model_config = ConfigDict(frozen=True)

    status: int
    headers: dict[str, str] = Field(default_factory=dict)
    data: Any = None
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class ErrorBody(BaseModel):
    """Error body contract: `{"error": ...}` plus any other keys.

    `error` falls back to None when the server omits it.
    """

    model_config = ConfigDict(extra="allow")

    error: Any = None


class FailureKind(str, Enum):
    """Classification of a failed response by HTTP status."""

    SERVER_ERROR = "server_error"  # 500
    UNAUTHENTICATED = "unauthenticated"  # 401
    FORBIDDEN = "forbidden"  # 403
    GENERIC = "generic"


# =============================================================================
# Request Configuration
# =============================================================================

VoidCallback = Callable[[], Any]
ResponseCallback = Callable[[FetchResponse], Any]
ErrorCallback = Callable[[Any, FetchResponse], Any]
ProgressCallback = Callable[[ProgressEvent], Any]


class RequestConfig(BaseModel):
    """Declarative description of one request and its callbacks.

    Target resolution:
        url if set, otherwise base_url joined with end_point.

    Header style:
        authorization selects BearerStyle, headers selects GenericStyle.
        Setting both is rejected.

    Callbacks (all optional):
        on_start, on_success, on_error, on_finish
        on_server_error (500), on_unauthenticated (401), on_forbidden (403)
        on_upload_progress, on_download_progress
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    method: Method
    base_url: str | None = None
    end_point: str | None = None
    url: str | None = None
    data: Any = None
    authorization: str | None = None
    headers: dict[str, str] | None = None
    signal: AbortSignal | None = None

    on_start: VoidCallback | None = None
    on_success: ResponseCallback | None = None
    on_error: ErrorCallback | None = None
    on_finish: VoidCallback | None = None

    on_server_error: ResponseCallback | None = None
    on_unauthenticated: ResponseCallback | None = None
    on_forbidden: ResponseCallback | None = None

    on_upload_progress: ProgressCallback | None = None
    on_download_progress: ProgressCallback | None = None

    @field_validator("method", mode="before")
    @classmethod
    def method_upper(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v

    @model_validator(mode="after")
    def single_header_style(self) -> "RequestConfig":
        if self.authorization is not None and self.headers is not None:
            raise ValueError("set either authorization or headers, not both")
        return self

    @property
    def header_strategy(self) -> HeaderStrategy:
        """The header composition variant selected by this config."""
        if self.headers is not None:
            return GenericStyle(headers=dict(self.headers))
        return BearerStyle(authorization=self.authorization)

    @property
    def target_url(self) -> str:
        """Resolved request URL; empty string when nothing resolves."""
        return resolve_url(url=self.url, base_url=self.base_url, end_point=self.end_point)
