"""callback-fetch: callback-driven HTTP request dispatch.

Public API:
    FetchClient - Synchronous client (dispatch, request, get, post, put, patch, delete)
    AsyncFetchClient - Asyncio client with the same operations
    AbortSignal - Cooperative cancellation handle
    callback_fetch.models - Request, response and progress models
    callback_fetch.exceptions - Error hierarchy
"""

from callback_fetch._internal.dispatch.signal import AbortSignal
from callback_fetch._version import __version__
from callback_fetch.client import AsyncFetchClient, FetchClient

__all__ = ["__version__", "AbortSignal", "AsyncFetchClient", "FetchClient"]
