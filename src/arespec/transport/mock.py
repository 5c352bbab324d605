r"""Network request handle that delivers a predefined result."""

from __future__ import annotations

__all__ = ["MOCK_DELAY", "MockedNetworkRequest"]

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from arespec.exceptions import RequestCancelledError
from arespec.progress import Progress
from arespec.result import Failure
from arespec.transport.base import NetworkRequest

if TYPE_CHECKING:
    from collections.abc import Callable

    from arespec.result import Result

logger: logging.Logger = logging.getLogger(__name__)

# Delay in seconds before a mocked result is delivered
MOCK_DELAY = 0.1


class MockedNetworkRequest(NetworkRequest):
    r"""Deliver ``result`` to ``completion`` after ``delay`` seconds.

    Cancelling before delivery delivers ``RequestCancelledError``
    instead. The completion runs on ``loop`` in both cases.

    Args:
        result: The result to deliver.
        completion: The completion callback.
        delay: Delay in seconds before delivery.
        loop: The event loop. Defaults to the running loop.
    """

    def __init__(
        self,
        result: Result[Any],
        completion: Callable[[Result[Any]], None],
        *,
        delay: float = MOCK_DELAY,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._loop = loop if loop is not None else asyncio.get_running_loop()
        self._completion: Callable[[Result[Any]], None] | None = completion
        self._finished = False
        self._upload_progress = Progress()
        self._download_progress = Progress()
        self._timer = self._loop.call_later(delay, self._deliver, result)

    @property
    def upload_progress(self) -> Progress:
        return self._upload_progress

    @property
    def download_progress(self) -> Progress:
        return self._download_progress

    def cancel(self) -> None:
        if self._finished:
            return
        self._loop.call_soon_threadsafe(self._deliver, Failure(RequestCancelledError()))

    def _deliver(self, result: Result[Any]) -> None:
        if self._finished:
            return
        self._finished = True
        self._timer.cancel()
        completion, self._completion = self._completion, None
        logger.debug(f"Delivering mocked result: {result!r}")
        if completion is not None:
            completion(result)
