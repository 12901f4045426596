"""Shared HTTP client configuration."""

import httpx

from callback_fetch._version import __version__

DEFAULT_TIMEOUT = 30.0
USER_AGENT = f"callback-fetch/{__version__}"


def create_http_client(*, timeout: float = DEFAULT_TIMEOUT) -> httpx.Client:
    """Create configured HTTP client.

    Args:
        timeout: Request timeout in seconds.

    Returns:
        Configured httpx.Client instance.
    """
    return httpx.Client(
        timeout=timeout,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
    )


def create_async_http_client(*, timeout: float = DEFAULT_TIMEOUT) -> httpx.AsyncClient:
    """Create configured async HTTP client.

    Args:
        timeout: Request timeout in seconds.

    Returns:
        Configured httpx.AsyncClient instance.
    """
    return httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
    )
