r"""Transport performing requests with ``httpx``.

Each request runs as an asyncio task on the loop ``execute`` is called
from. The completion callback is invoked from the task's done callback,
so it runs on that loop exactly once, whether the task finished,
failed or was cancelled.

Upload progress advances with every body chunk handed to the network
layer. Download progress advances with every chunk read from the
response.
"""

from __future__ import annotations

__all__ = ["HttpxNetworkRequest", "HttpxTransport"]

import asyncio
import logging
import time
from contextlib import ExitStack
from functools import partial
from typing import TYPE_CHECKING, Any

import httpx

from arespec.exceptions import RequestCancelledError, TransportError
from arespec.metrics import TaskError, TaskMetrics, TransmissionProgress
from arespec.progress import Progress
from arespec.result import Failure, Success
from arespec.transport.base import NetworkRequest, Transport
from arespec.transport.decoding import JSONResponseDecoder, decode_response
from arespec.transport.encoding import build_httpx_request, request_body_length

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from types import TracebackType
    from typing import Self

    from arespec.resolver import ResolvedRequest
    from arespec.result import Result
    from arespec.transport.base import TransportEvents
    from arespec.transport.decoding import ResponseDecoder

logger: logging.Logger = logging.getLogger(__name__)


class HttpxNetworkRequest(NetworkRequest):
    """Handle on a request running as an asyncio task.

    Args:
        loop: The loop the task runs on.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        self._task: asyncio.Task[Any] | None = None
        self._upload_progress = Progress()
        self._download_progress = Progress()

    @property
    def upload_progress(self) -> Progress:
        return self._upload_progress

    @property
    def download_progress(self) -> Progress:
        return self._download_progress

    def attach(self, task: asyncio.Task[Any]) -> None:
        self._task = task

    def cancel(self) -> None:
        task = self._task
        if task is None or task.done():
            return
        self._loop.call_soon_threadsafe(task.cancel)


class _UploadStream(httpx.AsyncByteStream):
    """Request body stream advancing ``progress`` with every chunk sent."""

    def __init__(self, stream: httpx.AsyncByteStream, progress: Progress) -> None:
        self._stream = stream
        self._progress = progress

    async def __aiter__(self) -> AsyncIterator[bytes]:
        async for chunk in self._stream:
            self._progress.advance(len(chunk))
            yield chunk

    async def aclose(self) -> None:
        await self._stream.aclose()


class _Exchange:
    """Mutable record of one request/response exchange, used to build
    metrics."""

    def __init__(self, request: ResolvedRequest[Any], handle: HttpxNetworkRequest) -> None:
        self.request = request
        self.handle = handle
        self.start_time: float | None = None
        self.request_body_bytes: int | None = None
        self.response: httpx.Response | None = None
        self.data: bytes | None = None

    def metrics(self, error: BaseException | None) -> TaskMetrics | None:
        if self.start_time is None:
            return None
        response = self.response
        return TaskMetrics(
            url=self.request.url,
            method=self.request.method,
            start_time=self.start_time,
            end_time=time.time(),
            status_code=response.status_code if response is not None else None,
            redirect_count=len(response.history) if response is not None else 0,
            request_body_bytes=self.request_body_bytes,
            response_body_bytes=response.num_bytes_downloaded if response is not None else 0,
            upload_progress=TransmissionProgress.from_progress(self.handle.upload_progress),
            download_progress=TransmissionProgress.from_progress(self.handle.download_progress),
            error=TaskError.from_exception(error) if error is not None else None,
        )


class HttpxTransport(Transport):
    r"""Transport backed by an ``httpx.AsyncClient``.

    Without an explicit client, the transport must be used as an async
    context manager, which creates and closes its own client.

    Args:
        client: Optional client to send requests with. The caller keeps
            ownership of it.
        decoder: Decoder of response payloads. Defaults to
            ``JSONResponseDecoder``.
        request_modifier: Optional callable invoked with every outgoing
            ``httpx.Request`` before it is sent; it may mutate the request
            in place. Exceptions it raises fail the request.
        validate_status: If ``True``, responses with a non-2xx status fail
            with ``TransportError``.

    Example:
        ```pycon
        >>> import asyncio
        >>> from arespec.transport import HttpxTransport
        >>> async def main():  # doctest: +SKIP
        ...     async with HttpxTransport() as transport:
        ...         ...
        ...
        >>> asyncio.run(main())  # doctest: +SKIP

        ```
    """

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        decoder: ResponseDecoder | None = None,
        request_modifier: Callable[[httpx.Request], None] | None = None,
        validate_status: bool = True,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._decoder = decoder if decoder is not None else JSONResponseDecoder()
        self._request_modifier = request_modifier
        self._validate_status = validate_status
        self._tasks: set[asyncio.Task[Any]] = set()

    async def __aenter__(self) -> Self:
        """Enter the async context manager and create the underlying
        httpx client if none was provided."""
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel in-flight requests and close the client if owned."""
        self.cancel_all()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure the client is available for use.

        Raises:
            RuntimeError: If no client was provided and the transport is
                used outside of an async context manager.
        """
        if self._client is None:
            msg = "HttpxTransport must be used within an async context manager (async with statement)"
            raise RuntimeError(msg)
        return self._client

    def execute(
        self,
        request: ResolvedRequest[Any],
        completion: Callable[[Result[Any]], None],
        events: TransportEvents | None = None,
    ) -> HttpxNetworkRequest:
        client = self._ensure_client()
        loop = asyncio.get_running_loop()
        handle = HttpxNetworkRequest(loop)
        exchange = _Exchange(request, handle)
        task = loop.create_task(self._perform(client, exchange))
        handle.attach(task)
        self._tasks.add(task)
        task.add_done_callback(partial(self._finish, exchange, completion, events))
        logger.debug(f"{request.method} request to {request.url} dispatched")
        return handle

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    async def _perform(self, client: httpx.AsyncClient, exchange: _Exchange) -> Any:
        request = exchange.request
        upload, download = exchange.handle.upload_progress, exchange.handle.download_progress
        with ExitStack() as stack:
            http_request = build_httpx_request(client, request, stack)
            if self._request_modifier is not None:
                self._request_modifier(http_request)
            exchange.start_time = time.time()
            exchange.request_body_bytes = request_body_length(http_request)
            upload.set_total(exchange.request_body_bytes or 0)
            if isinstance(http_request.stream, httpx.AsyncByteStream):
                http_request.stream = _UploadStream(http_request.stream, upload)
            try:
                response = await client.send(http_request, stream=True)
            except httpx.RequestError as exc:
                msg = f"{request.method} request to {request.url} failed: {exc}"
                raise TransportError(request.method, request.url, msg, cause=exc) from exc
        exchange.response = response
        upload.finish()

        try:
            length = response.headers.get("Content-Length")
            if length is not None and length.isdigit():
                download.set_total(int(length))
            chunks = []
            async for chunk in response.aiter_bytes():
                chunks.append(chunk)
                download.set_completed(response.num_bytes_downloaded)
        except httpx.RequestError as exc:
            msg = f"{request.method} request to {request.url} failed while reading the response: {exc}"
            raise TransportError(
                request.method,
                request.url,
                msg,
                status_code=response.status_code,
                response=response,
                cause=exc,
            ) from exc
        finally:
            await response.aclose()
        exchange.data = b"".join(chunks)
        download.finish()

        if self._validate_status and not response.is_success:
            msg = f"{request.method} request to {request.url} failed with status {response.status_code}"
            raise TransportError(
                request.method,
                request.url,
                msg,
                status_code=response.status_code,
                response=response,
            )
        return decode_response(self._decoder, request, response, exchange.data)

    def _finish(
        self,
        exchange: _Exchange,
        completion: Callable[[Result[Any]], None],
        events: TransportEvents | None,
        task: asyncio.Task[Any],
    ) -> None:
        self._tasks.discard(task)
        request = exchange.request
        error: BaseException | None
        if task.cancelled():
            error = RequestCancelledError(f"{request.method} request to {request.url} was cancelled")
        else:
            error = task.exception()
        metrics = exchange.metrics(error)

        if error is None:
            logger.debug(f"{request.method} request to {request.url} succeeded")
            if events is not None and metrics is not None:
                events.metrics_collected(metrics)
            completion(Success(task.result()))
            return

        logger.debug(f"{request.method} request to {request.url} failed: {error!r}")
        if events is not None:
            events.request_failed(
                url=request.url,
                error=error,
                response=exchange.response,
                response_data=exchange.data,
                task_metrics=metrics,
            )
            if metrics is not None:
                events.metrics_collected(metrics)
        completion(Failure(error))
