"""Abortable handle for in-flight requests."""

import threading
from collections.abc import Callable
from typing import Any

from callback_fetch.exceptions import FetchAbortedError


class AbortSignal:
    """Cooperative cancellation handle shared between a caller and a dispatch.

    The dispatcher checks the signal before issuing the request, as soon as
    the response arrives and before each upload or download chunk. The async
    client also listens for abort() so it can stop waiting on the transport.
    Safe to abort from another thread.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: Any = None
        self._listeners: list[Callable[[], Any]] = []

    @property
    def aborted(self) -> bool:
        """True once abort() has been called."""
        return self._event.is_set()

    @property
    def reason(self) -> Any:
        return self._reason

    def abort(self, reason: Any = None) -> None:
        """Abort the request. Later calls keep the first reason."""
        with self._lock:
            if self._event.is_set():
                return
            self._reason = reason
            self._event.set()
            listeners = list(self._listeners)
        for listener in listeners:
            listener()

    def add_listener(self, listener: Callable[[], Any]) -> Callable[[], None]:
        """Call listener once on abort, immediately if already aborted.

        Returns:
            A function that unregisters the listener.
        """
        with self._lock:
            if not self._event.is_set():
                self._listeners.append(listener)
                registered = True
            else:
                registered = False
        if not registered:
            listener()

        def remove() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return remove

    def raise_if_aborted(self, *, method: str | None = None, url: str | None = None) -> None:
        """Raise FetchAbortedError if the signal has fired."""
        if self._event.is_set():
            raise FetchAbortedError(reason=self._reason, method=method, url=url)

    def __repr__(self) -> str:
        return f"AbortSignal(aborted={self.aborted})"
