r"""Event handlers for request lifecycle observability.

This module lets applications hook into the request lifecycle for
logging, metrics and alerting. Handlers are registered on a client and
held by weak reference: registering a handler never keeps it alive, and
a handler that is garbage collected silently leaves the registry.

The event system provides three lifecycle hooks:
- on_request_start: Called before a request is sent
- on_request_failure: Called when a request fails
- on_metrics: Called when the metrics of a request are collected

Example:
    ```pycon
    >>> from arespec.callbacks import EventHandler, EventHandlerRegistry
    >>> class PrintingHandler(EventHandler):
    ...     def on_request_start(self, info):
    ...         print(f"Sending {info.spec.path}")
    ...
    >>> handler = PrintingHandler()
    >>> registry = EventHandlerRegistry()
    >>> registry.add(handler)
    >>> len(registry)
    1

    ```
"""

from __future__ import annotations

__all__ = [
    "EventHandler",
    "EventHandlerRegistry",
    "MetricsInfo",
    "RequestFailureInfo",
    "RequestStartInfo",
]

import logging
import weakref
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import httpx

    from arespec.metrics import TaskMetrics
    from arespec.request import RequestSpec

logger: logging.Logger = logging.getLogger(__name__)


@dataclass
class RequestStartInfo:
    """Information passed to on_request_start.

    Attributes:
        client: The client sending the request.
        spec: The request about to be sent.
    """

    client: Any
    spec: RequestSpec[Any]


@dataclass
class RequestFailureInfo:
    """Information passed to on_request_failure.

    Attributes:
        client: The client that sent the request.
        url: The requested URL.
        error: The exception that ended the request.
        response: The HTTP response, if one was received.
        response_data: The raw response body, if one was received.
        task_metrics: The request metrics, if collected.
    """

    client: Any
    url: str
    error: BaseException
    response: httpx.Response | None = None
    response_data: bytes | None = None
    task_metrics: TaskMetrics | None = None


@dataclass
class MetricsInfo:
    """Information passed to on_metrics.

    Attributes:
        client: The client that sent the request.
        task_metrics: The collected metrics.
    """

    client: Any
    task_metrics: TaskMetrics


class EventHandler:
    """Base class of request lifecycle event handlers.

    Every hook is a no-op; subclasses override the ones they need.
    """

    def on_request_start(self, info: RequestStartInfo) -> None:
        """Called before a request is sent."""

    def on_request_failure(self, info: RequestFailureInfo) -> None:
        """Called when a request fails."""

    def on_metrics(self, info: MetricsInfo) -> None:
        """Called when the metrics of a request are collected."""


class EventHandlerRegistry:
    r"""Registry of event handlers held by weak reference.

    Handlers are notified in registration order. Adding a handler twice
    has no effect.

    Example:
        ```pycon
        >>> import gc
        >>> from arespec.callbacks import EventHandler, EventHandlerRegistry
        >>> registry = EventHandlerRegistry()
        >>> handler = EventHandler()
        >>> registry.add(handler)
        >>> del handler
        >>> _ = gc.collect()
        >>> len(registry)
        0

        ```
    """

    def __init__(self) -> None:
        self._refs: list[weakref.ReferenceType[EventHandler]] = []

    def __len__(self) -> int:
        return len(self.handlers())

    def __contains__(self, handler: object) -> bool:
        return any(handler is alive for alive in self.handlers())

    def add(self, handler: EventHandler) -> None:
        """Register ``handler`` without taking ownership of it."""
        if handler not in self:
            self._refs.append(weakref.ref(handler))

    def remove(self, handler: EventHandler) -> None:
        """Unregister ``handler``. Unknown handlers are ignored."""
        self._refs = [ref for ref in self._refs if ref() is not None and ref() is not handler]

    def handlers(self) -> list[EventHandler]:
        """Return the live handlers in registration order."""
        alive = [handler for handler in (ref() for ref in self._refs) if handler is not None]
        if len(alive) != len(self._refs):
            self._refs = [ref for ref in self._refs if ref() is not None]
        return alive

    def notify_request_start(self, info: RequestStartInfo) -> None:
        for handler in self.handlers():
            handler.on_request_start(info)

    def notify_request_failure(self, info: RequestFailureInfo) -> None:
        logger.debug(f"Request to {info.url} failed: {info.error!r}")
        for handler in self.handlers():
            handler.on_request_failure(info)

    def notify_metrics(self, info: MetricsInfo) -> None:
        for handler in self.handlers():
            handler.on_metrics(info)
