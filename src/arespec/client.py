r"""API clients sending ``RequestSpec`` values through a transport.

``SimpleAPIClient`` resolves every spec against its request defaults,
reports lifecycle events to the registered event handlers and hands the
resolved request to its transport. Specs carrying a mock result never
reach the transport.
"""

from __future__ import annotations

__all__ = ["APIClient", "SimpleAPIClient"]

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, TypeVar

from arespec.callbacks import (
    EventHandlerRegistry,
    MetricsInfo,
    RequestFailureInfo,
    RequestStartInfo,
)
from arespec.core.config import FixedDefaults, RequestDefaults
from arespec.resolver import resolve
from arespec.transport.mock import MockedNetworkRequest
from arespec.utils.structured_logging import log_structured

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType
    from typing import Self

    import httpx

    from arespec.callbacks import EventHandler
    from arespec.core.config import DefaultsSource
    from arespec.metrics import TaskMetrics
    from arespec.request import RequestSpec
    from arespec.result import Result
    from arespec.transport.base import NetworkRequest, Transport

T = TypeVar("T")

logger: logging.Logger = logging.getLogger(__name__)


class APIClient(ABC):
    """Sends requests described by ``RequestSpec`` values."""

    @abstractmethod
    def send(
        self, spec: RequestSpec[T], completion: Callable[[Result[T]], None]
    ) -> NetworkRequest:
        """Send the request described by ``spec``.

        Args:
            spec: The request description.
            completion: Invoked exactly once with the decoded response or
                the error that ended the request.

        Returns:
            The handle of the in-flight request.
        """


class _ClientEvents:
    """Forwards transport events of one request to the client's event
    handlers."""

    def __init__(self, client: SimpleAPIClient) -> None:
        self._client = client

    def request_failed(
        self,
        *,
        url: str,
        error: BaseException,
        response: httpx.Response | None,
        response_data: bytes | None,
        task_metrics: TaskMetrics | None,
    ) -> None:
        self._client.event_handlers.notify_request_failure(
            RequestFailureInfo(
                client=self._client,
                url=url,
                error=error,
                response=response,
                response_data=response_data,
                task_metrics=task_metrics,
            )
        )

    def metrics_collected(self, task_metrics: TaskMetrics) -> None:
        self._client.event_handlers.notify_metrics(
            MetricsInfo(client=self._client, task_metrics=task_metrics)
        )


class SimpleAPIClient(APIClient):
    r"""Client merging every request with its defaults before sending it
    through ``transport``.

    Args:
        transport: The transport performing the requests.
        request_defaults: The defaults, or a source read once per request
            (``FixedDefaults`` or ``ComputedDefaults``).

    Example:
        ```pycon
        >>> import asyncio
        >>> from arespec import RequestDefaults, RequestSpec, SimpleAPIClient, perform
        >>> from arespec.transport import HttpxTransport
        >>> async def main():  # doctest: +SKIP
        ...     async with HttpxTransport() as transport:
        ...         client = SimpleAPIClient(
        ...             transport,
        ...             RequestDefaults(base_url="https://api.example.com", method="GET"),
        ...         )
        ...         return await perform(client, RequestSpec(path="/users"))
        ...
        >>> asyncio.run(main())  # doctest: +SKIP

        ```
    """

    def __init__(
        self, transport: Transport, request_defaults: RequestDefaults | DefaultsSource
    ) -> None:
        self._transport = transport
        if isinstance(request_defaults, RequestDefaults):
            request_defaults = FixedDefaults(request_defaults)
        self._defaults_source = request_defaults
        self._event_handlers = EventHandlerRegistry()
        self._events = _ClientEvents(self)

    async def __aenter__(self) -> Self:
        """Enter the transport's context, if it has one."""
        enter = getattr(self._transport, "__aenter__", None)
        if enter is not None:
            await enter()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        exit_ = getattr(self._transport, "__aexit__", None)
        if exit_ is not None:
            await exit_(exc_type, exc_val, exc_tb)

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def request_defaults(self) -> RequestDefaults:
        """The defaults the next request would be resolved with."""
        return self._defaults_source.get()

    @property
    def event_handlers(self) -> EventHandlerRegistry:
        return self._event_handlers

    def add_event_handler(self, handler: EventHandler) -> None:
        """Register ``handler``. The client only keeps a weak reference
        to it."""
        self._event_handlers.add(handler)

    def remove_event_handler(self, handler: EventHandler) -> None:
        self._event_handlers.remove(handler)

    def send(
        self, spec: RequestSpec[T], completion: Callable[[Result[T]], None]
    ) -> NetworkRequest:
        self._event_handlers.notify_request_start(RequestStartInfo(client=self, spec=spec))
        if spec.mock is not None:
            log_structured(logger, logging.DEBUG, "Sending mocked request", path=spec.path)
            return MockedNetworkRequest(spec.mock, completion)

        request = resolve(spec, self._defaults_source.get())
        log_structured(
            logger,
            logging.DEBUG,
            "Sending request",
            method=request.method,
            url=request.url,
        )
        return self._transport.execute(request, completion, events=self._events)

    def cancel_all_requests(self) -> None:
        """Cancel every in-flight request sent through this client's
        transport."""
        logger.debug("Cancelling all requests")
        self._transport.cancel_all()

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(transport={self._transport!r})"