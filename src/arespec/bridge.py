r"""Expose callback-driven requests as awaitable, cancellable objects.

``Promise`` is a single-assignment result cell that any number of
callbacks can observe. ``AsyncRequest`` wraps one transport invocation in
a ``Promise`` and makes it awaitable any number of times, from any
number of coroutines.

Example:
    ```pycon
    >>> import asyncio
    >>> from arespec import RequestDefaults, RequestSpec, SimpleAPIClient, Success, perform
    >>> from arespec.transport import HttpxTransport
    >>> async def main():
    ...     client = SimpleAPIClient(
    ...         HttpxTransport(), RequestDefaults(base_url="https://example.com", method="GET")
    ...     )
    ...     return await perform(client, RequestSpec(path="/", mock=Success({"id": 1})))
    ...
    >>> asyncio.run(main())
    {'id': 1}

    ```
"""

from __future__ import annotations

__all__ = ["AsyncRequest", "Promise", "perform", "send_async"]

import asyncio
import logging
import threading
from functools import partial
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from arespec.exceptions import RequestCancelledError
from arespec.progress import Progress
from arespec.result import Failure

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

    from arespec.client import APIClient
    from arespec.request import RequestSpec
    from arespec.result import Result
    from arespec.transport.base import NetworkRequest

T = TypeVar("T")

logger: logging.Logger = logging.getLogger(__name__)


class Promise(Generic[T]):
    r"""Thread-safe single-assignment result cell.

    Callbacks added before completion are queued and invoked in the order
    they were added when the result arrives. An exception raised by one
    of them is logged and does not prevent the others from running.
    Callbacks added after completion are invoked immediately with the
    stored result.

    Example:
        ```pycon
        >>> from arespec.bridge import Promise
        >>> from arespec.result import Success
        >>> promise = Promise()
        >>> promise.add_callback(lambda result: print("first", result.value))
        >>> promise.complete(Success(42))
        first 42
        >>> promise.add_callback(lambda result: print("late", result.value))
        late 42

        ```
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._result: Result[T] | None = None
        self._callbacks: list[Callable[[Result[T]], None]] = []

    @property
    def is_completed(self) -> bool:
        with self._lock:
            return self._result is not None

    @property
    def result(self) -> Result[T] | None:
        """The stored result, or ``None`` before completion."""
        with self._lock:
            return self._result

    def add_callback(self, callback: Callable[[Result[T]], None]) -> None:
        """Invoke ``callback`` once with the result."""
        with self._lock:
            if self._result is None:
                self._callbacks.append(callback)
                return
            callback(self._result)

    def complete(self, result: Result[T]) -> None:
        """Store ``result`` and notify the queued callbacks.

        Raises:
            RuntimeError: If the promise is already completed.
        """
        with self._lock:
            if self._result is not None:
                msg = f"Promise already completed with {self._result!r}, cannot complete with {result!r}"
                raise RuntimeError(msg)
            self._result = result
            callbacks, self._callbacks = self._callbacks, []
            for callback in callbacks:
                try:
                    callback(result)
                except Exception:
                    logger.exception(f"Promise callback {callback!r} raised")


class AsyncRequest(Generic[T]):
    r"""Awaitable and cancellable wrapper around one transport invocation.

    ``dispatch`` is called once, by ``start``, with the completion
    callback the transport must invoke. The request may be awaited any
    number of times and always yields the same value, or raises the same
    error.

    Cancelling a dispatched request forwards ``cancel()`` to the
    transport handle; the result still comes from the transport, normally
    as ``RequestCancelledError``. Cancelling a request that was never
    dispatched resolves it with ``RequestCancelledError`` immediately.

    Args:
        dispatch: Callable starting the transport invocation and returning
            its handle.
    """

    def __init__(
        self, dispatch: Callable[[Callable[[Result[T]], None]], NetworkRequest]
    ) -> None:
        self._dispatch = dispatch
        self._promise: Promise[T] = Promise()
        self._lock = threading.Lock()
        self._handle: NetworkRequest | None = None
        self._started = False
        self._cancelled = False
        self._upload_progress = Progress()
        self._download_progress = Progress()

    def __await__(self) -> Generator[Any, None, T]:
        return self.result().__await__()

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def is_completed(self) -> bool:
        return self._promise.is_completed

    @property
    def upload_progress(self) -> Progress:
        handle = self._handle
        return handle.upload_progress if handle is not None else self._upload_progress

    @property
    def download_progress(self) -> Progress:
        handle = self._handle
        return handle.download_progress if handle is not None else self._download_progress

    def start(self) -> AsyncRequest[T]:
        """Dispatch the request unless it was already started or
        cancelled."""
        with self._lock:
            if self._started or self._cancelled:
                return self
            self._started = True
        try:
            handle = self._dispatch(self._promise.complete)
        except Exception as exc:
            logger.debug(f"Request dispatch failed: {exc!r}")
            self._promise.complete(Failure(exc))
            return self
        with self._lock:
            self._handle = handle
            cancelled = self._cancelled
        if cancelled:
            handle.cancel()
        return self

    def cancel(self) -> None:
        """Request cancellation. Calls after the first one, and calls after
        completion, have no effect."""
        with self._lock:
            if self._cancelled or self._promise.is_completed:
                return
            self._cancelled = True
            started, handle = self._started, self._handle
        if not started:
            logger.debug("Request cancelled before dispatch")
            self._promise.complete(Failure(RequestCancelledError()))
            return
        if handle is not None:
            handle.cancel()

    def add_callback(self, callback: Callable[[Result[T]], None]) -> None:
        """Invoke ``callback`` once with the result of the request."""
        self._promise.add_callback(callback)

    async def result(self) -> T:
        """Wait for the request and return its value.

        If the awaiting coroutine is cancelled, the request is cancelled
        too before ``asyncio.CancelledError`` propagates.

        Raises:
            BaseException: The error the request failed with.
        """
        self.start()
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Result[T]] = loop.create_future()
        self._promise.add_callback(partial(_resolve_threadsafe, loop, future))
        try:
            outcome = await future
        except asyncio.CancelledError:
            self.cancel()
            raise
        return outcome.get()


def _resolve_threadsafe(
    loop: asyncio.AbstractEventLoop, future: asyncio.Future[Any], result: Result[Any]
) -> None:
    if loop.is_closed():
        return
    loop.call_soon_threadsafe(_resolve, future, result)


def _resolve(future: asyncio.Future[Any], result: Result[Any]) -> None:
    if not future.done():
        future.set_result(result)


def send_async(client: APIClient, spec: RequestSpec[T]) -> AsyncRequest[T]:
    """Send ``spec`` through ``client`` and return the started
    ``AsyncRequest``."""
    return AsyncRequest(partial(client.send, spec)).start()


async def perform(client: APIClient, spec: RequestSpec[T]) -> T:
    """Send ``spec`` through ``client`` and wait for its value.

    Raises:
        BaseException: The error the request failed with.
    """
    return await send_async(client, spec).result()
