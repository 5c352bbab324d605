r"""Interfaces between the request pipeline and the network layer.

A ``Transport`` executes a ``ResolvedRequest`` and returns a
``NetworkRequest`` handle. It must invoke the completion callback exactly
once per ``execute`` call, on the scheduling context ``execute`` was
called from, even when the request is cancelled (the result is then a
``Failure`` wrapping ``RequestCancelledError``).
"""

from __future__ import annotations

__all__ = ["Completion", "NetworkRequest", "Transport", "TransportEvents"]

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Protocol, TypeVar

if TYPE_CHECKING:
    import httpx

    from arespec.metrics import TaskMetrics
    from arespec.progress import Progress
    from arespec.resolver import ResolvedRequest
    from arespec.result import Result

T = TypeVar("T")

Completion = Callable[["Result[Any]"], None]


class NetworkRequest(ABC):
    """Handle on one in-flight request."""

    @abstractmethod
    def cancel(self) -> None:
        """Request cancellation.

        Safe to call several times and from any thread. The outcome still
        arrives through the completion callback.
        """

    @property
    @abstractmethod
    def upload_progress(self) -> Progress:
        """Progress of the request body upload."""

    @property
    @abstractmethod
    def download_progress(self) -> Progress:
        """Progress of the response body download."""


class TransportEvents(Protocol):
    """Receiver of the lifecycle events a transport reports."""

    def request_failed(
        self,
        *,
        url: str,
        error: BaseException,
        response: httpx.Response | None,
        response_data: bytes | None,
        task_metrics: TaskMetrics | None,
    ) -> None: ...

    def metrics_collected(self, task_metrics: TaskMetrics) -> None: ...


class Transport(ABC):
    """Performs resolved requests."""

    @abstractmethod
    def execute(
        self,
        request: ResolvedRequest[T],
        completion: Callable[[Result[T]], None],
        events: TransportEvents | None = None,
    ) -> NetworkRequest:
        """Start ``request`` and return its handle.

        Args:
            request: The resolved request.
            completion: Invoked exactly once with the decoded response or
                the error that ended the request.
            events: Optional receiver of failure and metrics events.

        Returns:
            The handle of the in-flight request.
        """

    def cancel_all(self) -> None:
        """Cancel every in-flight request started by this transport."""
