"""Public exceptions for callback-fetch."""

from typing import Any


class FetchError(Exception):
    """Base exception for all callback-fetch errors."""


class FetchNetworkError(FetchError):
    """Request failed without a server response (DNS, timeout, refused, bad URL)."""

    def __init__(self, message: str, *, method: str | None = None, url: str | None = None) -> None:
        super().__init__(message)
        self.method = method
        self.url = url


class FetchAbortedError(FetchNetworkError):
    """Request was cancelled through its AbortSignal."""

    def __init__(
        self,
        message: str = "Request aborted",
        *,
        reason: Any = None,
        method: str | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message, method=method, url=url)
        self.reason = reason


class FetchConfigError(FetchError):
    """Configuration error (malformed env vars, invalid client settings)."""


class FetchValidationError(FetchError):
    """Validation error for request configuration data."""
