r"""Poll a long-running server task until it finishes.

An ``APIPollingTask`` sends an initial request, asks its coordinator to
turn the response into a check request, and then sends that check
request repeatedly until the coordinator reports a final result. Two
check requests never start less than ``check_interval`` seconds apart;
a check that took longer than the interval is followed immediately by
the next one.

All entry points of a task (its constructor, ``cancel`` and the
callbacks it receives from the client and the scheduler) must run on the
same scheduling context, usually the running event loop.

Example:
    ```pycon
    >>> import asyncio
    >>> from arespec import RequestDefaults, RequestSpec, SimpleAPIClient, Success
    >>> from arespec.polling import APIPollingTask, BlockCoordinator, Finished, Progressing
    >>> from arespec.transport import HttpxTransport
    >>> coordinator = BlockCoordinator(
    ...     check_request_maker=lambda task: RequestSpec(
    ...         path=f"/tasks/{task['id']}", mock=Success({"done": True})
    ...     ),
    ...     check_result_handler=lambda status: (
    ...         Finished(Success("done")) if status["done"] else Progressing()
    ...     ),
    ... )
    >>> async def main():
    ...     client = SimpleAPIClient(
    ...         HttpxTransport(), RequestDefaults(base_url="https://example.com", method="GET")
    ...     )
    ...     initial = RequestSpec(path="/tasks", method="POST", mock=Success({"id": 7}))
    ...     return await APIPollingTask.perform(client, initial, coordinator)
    ...
    >>> asyncio.run(main())
    'done'

    ```
"""

from __future__ import annotations

__all__ = [
    "APIPollingTask",
    "BlockCoordinator",
    "Finished",
    "PollingCoordinator",
    "PollingDecision",
    "PollingTaskState",
    "Progressing",
]

import asyncio
import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any, Generic, TypeVar, Union

from arespec.core.config import PollingConfig
from arespec.exceptions import PollingTimeoutError, RequestCancelledError
from arespec.result import Failure
from arespec.scheduling import LoopScheduler

if TYPE_CHECKING:
    from collections.abc import Callable

    from arespec.client import APIClient
    from arespec.request import RequestSpec
    from arespec.result import Result
    from arespec.scheduling import Scheduler, TimerHandle
    from arespec.transport.base import NetworkRequest

T = TypeVar("T")

logger: logging.Logger = logging.getLogger(__name__)


class PollingTaskState(enum.Enum):
    """States of a polling task."""

    STARTING = "starting"
    CHECKING = "checking"
    WAITING = "waiting"
    FINISHED = "finished"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Progressing:
    """The server task is still running: check again."""


@dataclass(frozen=True)
class Finished(Generic[T]):
    """The server task is over; ``result`` ends the polling task."""

    result: Result[T]


PollingDecision = Union[Progressing, Finished[T]]


class PollingCoordinator(ABC):
    """Policy of a polling task: how to check the server task and how to
    read the check responses."""

    @abstractmethod
    def make_check_request(self, initial_value: Any) -> RequestSpec[Any]:
        """Build the check request from the value of the initial request.

        Raises:
            Exception: If the value does not allow building a check
                request; the polling task fails with that error.
        """

    @abstractmethod
    def handle_check_result(self, value: Any) -> PollingDecision[Any]:
        """Decide whether the server task is over from the value of a
        check request."""

    def handle_task_cancelled(self) -> None:
        """Called when the polling task is cancelled or times out."""


class BlockCoordinator(PollingCoordinator):
    r"""Coordinator implemented by plain callables.

    Args:
        check_request_maker: Implementation of ``make_check_request``.
        check_result_handler: Implementation of ``handle_check_result``.
        cancellation_handler: Optional implementation of
            ``handle_task_cancelled``.
    """

    def __init__(
        self,
        check_request_maker: Callable[[Any], RequestSpec[Any]],
        check_result_handler: Callable[[Any], PollingDecision[Any]],
        cancellation_handler: Callable[[], None] | None = None,
    ) -> None:
        self._check_request_maker = check_request_maker
        self._check_result_handler = check_result_handler
        self._cancellation_handler = cancellation_handler

    def make_check_request(self, initial_value: Any) -> RequestSpec[Any]:
        return self._check_request_maker(initial_value)

    def handle_check_result(self, value: Any) -> PollingDecision[Any]:
        return self._check_result_handler(value)

    def handle_task_cancelled(self) -> None:
        if self._cancellation_handler is not None:
            self._cancellation_handler()


_TERMINAL_STATES = frozenset({PollingTaskState.FINISHED, PollingTaskState.CANCELLED})


class APIPollingTask:
    r"""Send an initial request, then poll with check requests until the
    coordinator reports a result.

    The task starts as soon as it is created. ``completion`` is invoked
    at most once with the final result: the coordinator's result, the
    first error of a request or of the coordinator,
    ``RequestCancelledError`` after ``cancel``, or
    ``PollingTimeoutError`` when ``task_timeout`` elapses first.

    Args:
        api: The client sending the requests.
        initial_request: The request starting the server task.
        coordinator: The polling policy.
        completion: Invoked with the final result.
        configuration: Polling intervals. Defaults to ``PollingConfig()``.
        scheduler: Clock and timer source. Defaults to a ``LoopScheduler``
            on the running loop.
    """

    def __init__(
        self,
        api: APIClient,
        initial_request: RequestSpec[Any],
        coordinator: PollingCoordinator,
        completion: Callable[[Result[Any]], None],
        configuration: PollingConfig | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._api = api
        self._coordinator = coordinator
        self._completion: Callable[[Result[Any]], None] | None = completion
        self._configuration = configuration if configuration is not None else PollingConfig()
        self._scheduler = scheduler if scheduler is not None else LoopScheduler()
        self._state = PollingTaskState.STARTING
        self._handle: NetworkRequest | None = None
        self._check_request: RequestSpec[Any] | None = None
        self._check_timer: TimerHandle | None = None
        self._deadline_timer: TimerHandle | None = None
        self._sent = 0
        self._pending: int | None = None

        task_timeout = self._configuration.task_timeout
        if task_timeout is not None:
            self._deadline_timer = self._scheduler.call_later(task_timeout, self._deadline_elapsed)
        logger.debug(f"Polling task starting with {initial_request.path!r}")
        self._send(initial_request, self._initial_request_completed)

    @property
    def state(self) -> PollingTaskState:
        return self._state

    @property
    def is_cancelled(self) -> bool:
        return self._state is PollingTaskState.CANCELLED

    @property
    def is_done(self) -> bool:
        return self._state in _TERMINAL_STATES

    def cancel(self) -> None:
        """Cancel the task.

        Pending timers and the in-flight request are cancelled, the
        coordinator is notified and the completion receives
        ``RequestCancelledError``. Has no effect once the task is done.
        """
        if self.is_done:
            return
        logger.debug(f"Polling task cancelled in state {self._state.value}")
        self._abort(PollingTaskState.CANCELLED, RequestCancelledError("Polling task was cancelled"))

    def _send(self, spec: RequestSpec[Any], callback: Callable[[Result[Any]], None]) -> None:
        self._sent += 1
        sent = self._pending = self._sent
        try:
            handle = self._api.send(spec, callback)
        except Exception as exc:
            logger.debug(f"Cannot send {spec.path!r}: {exc!r}")
            self._finish(Failure(exc))
            return
        # The request may already have completed synchronously
        if self._pending == sent:
            self._handle = handle

    def _initial_request_completed(self, result: Result[Any]) -> None:
        if self.is_done:
            return
        self._pending, self._handle = None, None
        if not result.is_success:
            self._finish(result)
            return
        try:
            self._check_request = self._coordinator.make_check_request(result.value)
        except Exception as exc:
            logger.debug(f"Cannot build the check request: {exc!r}")
            self._finish(Failure(exc))
            return
        self._check()

    def _check(self) -> None:
        if self.is_done or self._check_request is None:
            return
        self._check_timer = None
        self._state = PollingTaskState.CHECKING
        started_at = self._scheduler.now()
        self._send(self._check_request, partial(self._check_completed, started_at))

    def _check_completed(self, started_at: float, result: Result[Any]) -> None:
        if self.is_done:
            return
        self._pending, self._handle = None, None
        if not result.is_success:
            self._finish(result)
            return
        try:
            decision = self._coordinator.handle_check_result(result.value)
        except Exception as exc:
            logger.debug(f"Cannot handle the check result: {exc!r}")
            self._finish(Failure(exc))
            return
        if isinstance(decision, Finished):
            self._finish(decision.result)
            return

        elapsed = self._scheduler.now() - started_at
        interval = self._configuration.check_interval
        if elapsed >= interval:
            logger.debug(f"Check took {elapsed:.3f}s, checking again immediately")
            self._check()
            return
        self._schedule_check(interval - elapsed)

    def _schedule_check(self, delay: float) -> None:
        if self._check_timer is not None:
            self._check_timer.cancel()
        self._state = PollingTaskState.WAITING
        logger.debug(f"Next check in {delay:.3f}s")
        self._check_timer = self._scheduler.call_later(delay, self._check)

    def _deadline_elapsed(self) -> None:
        self._deadline_timer = None
        if self.is_done:
            return
        timeout = self._configuration.task_timeout
        logger.debug(f"Polling task timed out after {timeout}s")
        self._abort(PollingTaskState.FINISHED, PollingTimeoutError(timeout))

    def _abort(self, state: PollingTaskState, error: BaseException) -> None:
        self._state = state
        self._cancel_timers()
        handle, self._handle = self._handle, None
        try:
            if handle is not None:
                handle.cancel()
            self._coordinator.handle_task_cancelled()
        finally:
            self._deliver(Failure(error))

    def _finish(self, result: Result[Any]) -> None:
        self._state = PollingTaskState.FINISHED
        self._cancel_timers()
        logger.debug(f"Polling task finished: {result!r}")
        self._deliver(result)

    def _cancel_timers(self) -> None:
        for timer in (self._check_timer, self._deadline_timer):
            if timer is not None:
                timer.cancel()
        self._check_timer = None
        self._deadline_timer = None

    def _deliver(self, result: Result[Any]) -> None:
        completion, self._completion = self._completion, None
        if completion is not None:
            completion(result)

    @classmethod
    async def perform(
        cls,
        api: APIClient,
        initial_request: RequestSpec[Any],
        coordinator: PollingCoordinator,
        configuration: PollingConfig | None = None,
        scheduler: Scheduler | None = None,
    ) -> Any:
        """Run a polling task and wait for its value.

        If the awaiting coroutine is cancelled, the polling task is
        cancelled too before ``asyncio.CancelledError`` propagates.

        Raises:
            BaseException: The error the task failed with.
        """
        future: asyncio.Future[Result[Any]] = asyncio.get_running_loop().create_future()

        def resolve(result: Result[Any]) -> None:
            if not future.done():
                future.set_result(result)

        task = cls(
            api,
            initial_request,
            coordinator,
            resolve,
            configuration=configuration,
            scheduler=scheduler,
        )
        try:
            outcome = await future
        except asyncio.CancelledError:
            task.cancel()
            raise
        return outcome.get()
