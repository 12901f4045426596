"""Callback-driven HTTP clients.

Each call issues one request and reports the outcome through the callbacks
on its RequestConfig instead of a return value:

    from callback_fetch import FetchClient

    with FetchClient(base_url="https://api.example.com") as client:
        client.get(
            end_point="/users",
            authorization="Bearer abc",
            on_success=lambda res: print(res.data),
            on_error=lambda error, res: print(res.status, error),
            on_finish=lambda: print("done"),
        )

Failed responses are delivered to on_error and the status callbacks.
Failures without a response raise FetchNetworkError after on_finish runs.
"""

import asyncio
import inspect
import json
import os
import sys
from collections.abc import AsyncIterator, Coroutine, Iterator
from dataclasses import dataclass
from typing import Any, Self

import httpx
from pydantic import ValidationError

from callback_fetch._internal.dispatch.compose import build_headers, encode_body, resolve_url
from callback_fetch._internal.dispatch.models import (
    UPLOAD_CHUNK_SIZE,
    FetchResponse,
    ProgressEvent,
    RequestConfig,
)
from callback_fetch._internal.dispatch.redaction import redact_headers, redact_payload
from callback_fetch._internal.dispatch.routing import outcome_calls, to_fetch_response
from callback_fetch._internal.dispatch.signal import AbortSignal
from callback_fetch._internal.http import create_async_http_client, create_http_client
from callback_fetch.exceptions import (
    FetchAbortedError,
    FetchConfigError,
    FetchNetworkError,
    FetchValidationError,
)

DEFAULT_TIMEOUT_MS = 30000


@dataclass(slots=True)
class _PreparedRequest:
    method: str
    url: str
    headers: httpx.Headers
    body: bytes | None


class _BaseFetchClient:
    """Settings, request preparation and debug output shared by both clients."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        debug: bool = False,
    ) -> None:
        if timeout_ms <= 0:
            raise FetchConfigError(f"timeout_ms must be positive, got {timeout_ms}")
        self._base_url = base_url
        self._timeout_ms = timeout_ms
        self._debug = debug

    @classmethod
    def from_env(cls, http_client: httpx.Client | httpx.AsyncClient | None = None) -> Self:
        """Create a client from environment variables.

        Optional environment variables:
            CALLBACK_FETCH_BASE_URL: Default base URL for calls that set none.
            CALLBACK_FETCH_TIMEOUT_MS: Request timeout in milliseconds.
            CALLBACK_FETCH_DEBUG: Set to "1" to enable debug logging.

        Raises:
            FetchConfigError: If CALLBACK_FETCH_TIMEOUT_MS is not a positive integer.
        """
        base_url = os.environ.get("CALLBACK_FETCH_BASE_URL") or None
        debug = os.environ.get("CALLBACK_FETCH_DEBUG", "") == "1"
        raw_timeout = os.environ.get("CALLBACK_FETCH_TIMEOUT_MS", str(DEFAULT_TIMEOUT_MS))
        try:
            timeout_ms = int(raw_timeout)
        except ValueError as e:
            raise FetchConfigError(f"Invalid CALLBACK_FETCH_TIMEOUT_MS: {raw_timeout!r}") from e

        return cls(http_client=http_client, base_url=base_url, timeout_ms=timeout_ms, debug=debug)

    @property
    def base_url(self) -> str | None:
        return self._base_url

    def _log_debug(self, message: str) -> None:
        """Log a debug message to stderr if debug mode is enabled."""
        if self._debug:
            print(f"[callback-fetch] {message}", file=sys.stderr)

    def _build_config(self, method: str, options: dict[str, Any]) -> RequestConfig:
        try:
            return RequestConfig(method=method, **options)
        except ValidationError as e:
            raise FetchValidationError(str(e)) from e

    def _prepare(self, config: RequestConfig) -> _PreparedRequest:
        url = resolve_url(
            url=config.url,
            base_url=config.base_url or self._base_url,
            end_point=config.end_point,
        )
        prepared = _PreparedRequest(
            method=config.method,
            url=url,
            headers=build_headers(config.header_strategy, config.method),
            body=encode_body(config.data),
        )
        if self._debug:
            self._log_debug(
                f"{prepared.method} {prepared.url or '<no url>'} "
                f"headers={redact_headers(prepared.headers)} "
                f"data={json.dumps(redact_payload(config.data), default=str)[:200]}"
            )
        return prepared

    def _streams_upload(self, config: RequestConfig, prepared: _PreparedRequest) -> bool:
        """Whether the body must be sent chunk by chunk."""
        if prepared.body is None:
            return False
        if config.on_upload_progress is None and config.signal is None:
            return False
        # Keep a fixed length instead of chunked transfer encoding
        prepared.headers["Content-Length"] = str(len(prepared.body))
        return True

    def _check_abort(self, signal: AbortSignal | None, prepared: _PreparedRequest) -> None:
        if signal is not None:
            signal.raise_if_aborted(method=prepared.method, url=prepared.url)

    def _network_error(self, prepared: _PreparedRequest, error: httpx.RequestError) -> FetchNetworkError:
        self._log_debug(f"{prepared.method} {prepared.url} failed without response: {error!r}")
        return FetchNetworkError(
            f"{prepared.method} {prepared.url or '<no url>'} failed: {error}",
            method=prepared.method,
            url=prepared.url,
        )

    @staticmethod
    def _content_length(response: httpx.Response) -> int | None:
        try:
            return int(response.headers["Content-Length"])
        except (KeyError, ValueError):
            return None


class FetchClient(_BaseFetchClient):
    """Synchronous callback-driven HTTP client.

    The transport is an injected httpx.Client. When none is given the client
    creates one and closes it in close().
    """

    def __init__(
        self,
        http_client: httpx.Client | None = None,
        *,
        base_url: str | None = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        debug: bool = False,
    ) -> None:
        """Initialize the client.

        Args:
            http_client: Transport to issue requests through.
            base_url: Default base URL for calls that set neither url nor base_url.
            timeout_ms: Request timeout in milliseconds for an owned transport.
            debug: Enable debug logging to stderr.
        """
        super().__init__(base_url=base_url, timeout_ms=timeout_ms, debug=debug)
        self._owns_http = http_client is None
        self._http = http_client or create_http_client(timeout=timeout_ms / 1000)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "FetchClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def request(self, config: RequestConfig) -> None:
        """Issue the request described by config and route its outcome.

        Raises:
            FetchNetworkError: The request failed without a server response.
            FetchAbortedError: The request's signal was aborted.
            FetchValidationError: The request data is not JSON serializable.
        """
        if config.on_start is not None:
            config.on_start()
        try:
            prepared = self._prepare(config)
            response = self._send(config, prepared)
            for callback, args in outcome_calls(config, response):
                callback(*args)
        finally:
            if config.on_finish is not None:
                config.on_finish()

    def dispatch(self, method: str, **options: Any) -> None:
        """Build a RequestConfig from keyword options and issue it.

        Raises:
            FetchValidationError: The options do not form a valid RequestConfig.
        """
        self.request(self._build_config(method, options))

    def get(self, **options: Any) -> None:
        self.dispatch("GET", **options)

    def post(self, **options: Any) -> None:
        self.dispatch("POST", **options)

    def put(self, **options: Any) -> None:
        self.dispatch("PUT", **options)

    def patch(self, **options: Any) -> None:
        self.dispatch("PATCH", **options)

    def delete(self, **options: Any) -> None:
        self.dispatch("DELETE", **options)

    def _send(self, config: RequestConfig, prepared: _PreparedRequest) -> FetchResponse:
        self._check_abort(config.signal, prepared)
        content: bytes | Iterator[bytes] | None = prepared.body
        if self._streams_upload(config, prepared):
            content = self._upload_chunks(config, prepared)

        try:
            with self._http.stream(
                prepared.method,
                prepared.url,
                headers=prepared.headers,
                content=content,
            ) as response:
                self._check_abort(config.signal, prepared)
                body = self._read_body(config, prepared, response)
        except httpx.RequestError as e:
            raise self._network_error(prepared, e) from e

        self._log_debug(f"{prepared.method} {prepared.url} -> {response.status_code}")
        return to_fetch_response(response, body)

    def _upload_chunks(self, config: RequestConfig, prepared: _PreparedRequest) -> Iterator[bytes]:
        body = prepared.body or b""
        total = len(body)
        loaded = 0
        for start in range(0, total, UPLOAD_CHUNK_SIZE):
            self._check_abort(config.signal, prepared)
            chunk = body[start : start + UPLOAD_CHUNK_SIZE]
            yield chunk
            loaded += len(chunk)
            if config.on_upload_progress is not None:
                config.on_upload_progress(
                    ProgressEvent(loaded=loaded, total=total, bytes=len(chunk), upload=True)
                )

    def _read_body(
        self, config: RequestConfig, prepared: _PreparedRequest, response: httpx.Response
    ) -> bytes:
        total = self._content_length(response)
        chunks: list[bytes] = []
        loaded = 0
        for chunk in response.iter_bytes():
            self._check_abort(config.signal, prepared)
            chunks.append(chunk)
            loaded += len(chunk)
            if config.on_download_progress is not None:
                config.on_download_progress(
                    ProgressEvent(loaded=loaded, total=total, bytes=len(chunk), download=True)
                )
        return b"".join(chunks)


class AsyncFetchClient(_BaseFetchClient):
    """Asyncio callback-driven HTTP client.

    Same operations as FetchClient, as coroutines. Callbacks may be plain
    functions or coroutine functions; returned awaitables are awaited in place.
    A FetchNetworkError surfaces from the awaited call, or through the event
    loop's exception handler when the call runs as a detached task.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        base_url: str | None = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        debug: bool = False,
    ) -> None:
        super().__init__(base_url=base_url, timeout_ms=timeout_ms, debug=debug)
        self._owns_http = http_client is None
        self._http = http_client or create_async_http_client(timeout=timeout_ms / 1000)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "AsyncFetchClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def request(self, config: RequestConfig) -> None:
        """Issue the request described by config and route its outcome.

        Raises:
            FetchNetworkError: The request failed without a server response.
            FetchAbortedError: The request's signal was aborted.
            FetchValidationError: The request data is not JSON serializable.
        """
        if config.on_start is not None:
            await _invoke(config.on_start)
        try:
            prepared = self._prepare(config)
            response = await self._send(config, prepared)
            for callback, args in outcome_calls(config, response):
                await _invoke(callback, *args)
        finally:
            if config.on_finish is not None:
                await _invoke(config.on_finish)

    async def dispatch(self, method: str, **options: Any) -> None:
        """Build a RequestConfig from keyword options and issue it."""
        await self.request(self._build_config(method, options))

    async def get(self, **options: Any) -> None:
        await self.dispatch("GET", **options)

    async def post(self, **options: Any) -> None:
        await self.dispatch("POST", **options)

    async def put(self, **options: Any) -> None:
        await self.dispatch("PUT", **options)

    async def patch(self, **options: Any) -> None:
        await self.dispatch("PATCH", **options)

    async def delete(self, **options: Any) -> None:
        await self.dispatch("DELETE", **options)

    async def _send(self, config: RequestConfig, prepared: _PreparedRequest) -> FetchResponse:
        self._check_abort(config.signal, prepared)
        content: bytes | AsyncIterator[bytes] | None = prepared.body
        if self._streams_upload(config, prepared):
            content = self._upload_chunks(config, prepared)

        try:
            if config.signal is None:
                response, body = await self._exchange(config, prepared, content)
            else:
                response, body = await self._race_abort(
                    config.signal, prepared, self._exchange(config, prepared, content)
                )
        except httpx.RequestError as e:
            raise self._network_error(prepared, e) from e

        self._log_debug(f"{prepared.method} {prepared.url} -> {response.status_code}")
        return to_fetch_response(response, body)

    async def _exchange(
        self,
        config: RequestConfig,
        prepared: _PreparedRequest,
        content: bytes | AsyncIterator[bytes] | None,
    ) -> tuple[httpx.Response, bytes]:
        async with self._http.stream(
            prepared.method,
            prepared.url,
            headers=prepared.headers,
            content=content,
        ) as response:
            self._check_abort(config.signal, prepared)
            body = await self._read_body(config, prepared, response)
        return response, body

    async def _race_abort(
        self,
        signal: AbortSignal,
        prepared: _PreparedRequest,
        exchange: Coroutine[Any, Any, tuple[httpx.Response, bytes]],
    ) -> tuple[httpx.Response, bytes]:
        """Run exchange until it completes or the signal fires, whichever is first."""
        loop = asyncio.get_running_loop()
        aborted = asyncio.Event()
        remove_listener = signal.add_listener(lambda: loop.call_soon_threadsafe(aborted.set))
        send_task = asyncio.ensure_future(exchange)
        abort_task = asyncio.ensure_future(aborted.wait())
        try:
            await asyncio.wait({send_task, abort_task}, return_when=asyncio.FIRST_COMPLETED)
            if send_task.done():
                return send_task.result()
            raise FetchAbortedError(reason=signal.reason, method=prepared.method, url=prepared.url)
        finally:
            remove_listener()
            send_task.cancel()
            abort_task.cancel()
            await asyncio.gather(send_task, abort_task, return_exceptions=True)

    async def _upload_chunks(
        self, config: RequestConfig, prepared: _PreparedRequest
    ) -> AsyncIterator[bytes]:
        body = prepared.body or b""
        total = len(body)
        loaded = 0
        for start in range(0, total, UPLOAD_CHUNK_SIZE):
            self._check_abort(config.signal, prepared)
            chunk = body[start : start + UPLOAD_CHUNK_SIZE]
            yield chunk
            loaded += len(chunk)
            if config.on_upload_progress is not None:
                await _invoke(
                    config.on_upload_progress,
                    ProgressEvent(loaded=loaded, total=total, bytes=len(chunk), upload=True),
                )

    async def _read_body(
        self, config: RequestConfig, prepared: _PreparedRequest, response: httpx.Response
    ) -> bytes:
        total = self._content_length(response)
        chunks: list[bytes] = []
        loaded = 0
        async for chunk in response.aiter_bytes():
            self._check_abort(config.signal, prepared)
            chunks.append(chunk)
            loaded += len(chunk)
            if config.on_download_progress is not None:
                await _invoke(
                    config.on_download_progress,
                    ProgressEvent(loaded=loaded, total=total, bytes=len(chunk), download=True),
                )
        return b"".join(chunks)


async def _invoke(callback: Any, *args: Any) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result
