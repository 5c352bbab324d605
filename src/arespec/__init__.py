r"""arespec - Declarative API requests on top of httpx.

This package describes API requests as immutable values, merges them with
client-wide defaults and sends them through a pluggable transport.
Callback-driven requests can be awaited and cancelled, and long-running
server tasks can be polled until they finish.

Key Features:
    - Immutable ``RequestSpec`` values with URL-encoded, multipart and JSON parameters
    - Client-wide ``RequestDefaults``, fixed or computed per request
    - httpx transport with upload and download progress, metrics and typed decoding
    - Awaitable, cancellable requests observable by any number of callers
    - Polling tasks driven by a coordinator, with a check interval and a deadline
    - Weakly held event handlers for request start, failure and metrics events
    - Mocked results for tests and previews

Example:
    ```pycon
    >>> from arespec import RequestDefaults, RequestSpec, SimpleAPIClient, perform
    >>> from arespec.transport import HttpxTransport
    >>> async def main():  # doctest: +SKIP
    ...     async with HttpxTransport() as transport:
    ...         client = SimpleAPIClient(
    ...             transport, RequestDefaults(base_url="https://api.example.com", method="GET")
    ...         )
    ...         return await perform(client, RequestSpec(path="/users"))
    ...

    ```
"""

from __future__ import annotations

__all__ = [
    "APIClient",
    "APIPollingTask",
    "ArespecError",
    "AsyncRequest",
    "BlockCoordinator",
    "ComputedDefaults",
    "CoordinatorError",
    "DataItem",
    "DecodingError",
    "Empty",
    "EventHandler",
    "Failure",
    "FileDataItem",
    "FileItem",
    "Finished",
    "FixedDefaults",
    "HeaderItems",
    "JsonEncoded",
    "Multipart",
    "PartialFileItem",
    "PollingConfig",
    "PollingCoordinator",
    "PollingTimeoutError",
    "Progress",
    "Progressing",
    "Promise",
    "QueryItem",
    "RequestCancelledError",
    "RequestDefaults",
    "RequestEncodingError",
    "RequestSpec",
    "ResolvedRequest",
    "Result",
    "SimpleAPIClient",
    "Success",
    "TaskMetrics",
    "TransportError",
    "UrlEncoded",
    "__version__",
    "file_item",
    "header_items",
    "partial_file_item",
    "perform",
    "resolve",
    "send_async",
    "string_item",
]

from importlib.metadata import PackageNotFoundError, version

from arespec.bridge import AsyncRequest, Promise, perform, send_async
from arespec.callbacks import EventHandler
from arespec.client import APIClient, SimpleAPIClient
from arespec.core.config import ComputedDefaults, FixedDefaults, PollingConfig, RequestDefaults
from arespec.exceptions import (
    ArespecError,
    CoordinatorError,
    DecodingError,
    PollingTimeoutError,
    RequestCancelledError,
    RequestEncodingError,
    TransportError,
)
from arespec.metrics import TaskMetrics
from arespec.polling import (
    APIPollingTask,
    BlockCoordinator,
    Finished,
    PollingCoordinator,
    Progressing,
)
from arespec.progress import Progress
from arespec.request import (
    DataItem,
    Empty,
    FileDataItem,
    FileItem,
    HeaderItems,
    JsonEncoded,
    Multipart,
    PartialFileItem,
    QueryItem,
    RequestSpec,
    UrlEncoded,
    file_item,
    header_items,
    partial_file_item,
    string_item,
)
from arespec.resolver import ResolvedRequest, resolve
from arespec.result import Failure, Result, Success

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"
