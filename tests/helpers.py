r"""Test doubles shared by the unit tests.

The doubles never call back on their own: tests decide when a request
completes and when time passes, which makes ordering deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from arespec.client import APIClient
from arespec.exceptions import RequestCancelledError
from arespec.progress import Progress
from arespec.result import Failure
from arespec.scheduling import Scheduler
from arespec.transport.base import NetworkRequest, Transport

if TYPE_CHECKING:
    from collections.abc import Callable

    from arespec.request import RequestSpec
    from arespec.resolver import ResolvedRequest
    from arespec.result import Result
    from arespec.transport.base import TransportEvents


class FakeNetworkRequest(NetworkRequest):
    """Network request handle completed by the test."""

    def __init__(self, completion: Callable[[Result[Any]], None]) -> None:
        self.completion = completion
        self.cancel_count = 0
        self.completed = False
        self._upload_progress = Progress()
        self._download_progress = Progress()

    @property
    def upload_progress(self) -> Progress:
        return self._upload_progress

    @property
    def download_progress(self) -> Progress:
        return self._download_progress

    def cancel(self) -> None:
        self.cancel_count += 1

    def complete(self, result: Result[Any]) -> None:
        self.completed = True
        self.completion(result)

    def confirm_cancel(self) -> None:
        """Deliver the cancellation error, like a transport does after
        ``cancel``."""
        self.complete(Failure(RequestCancelledError()))


@dataclass
class Execution:
    request: ResolvedRequest[Any]
    handle: FakeNetworkRequest
    events: TransportEvents | None = None


class RecordingTransport(Transport):
    """Transport recording every execution without performing it."""

    def __init__(self) -> None:
        self.executions: list[Execution] = []
        self.cancel_all_count = 0

    def execute(
        self,
        request: ResolvedRequest[Any],
        completion: Callable[[Result[Any]], None],
        events: TransportEvents | None = None,
    ) -> FakeNetworkRequest:
        handle = FakeNetworkRequest(completion)
        self.executions.append(Execution(request=request, handle=handle, events=events))
        return handle

    def cancel_all(self) -> None:
        self.cancel_all_count += 1


@dataclass
class Sent:
    spec: RequestSpec[Any]
    handle: FakeNetworkRequest


class RecordingClient(APIClient):
    """API client recording every sent spec without resolving it."""

    def __init__(self) -> None:
        self.sent: list[Sent] = []

    def send(
        self, spec: RequestSpec[Any], completion: Callable[[Result[Any]], None]
    ) -> FakeNetworkRequest:
        handle = FakeNetworkRequest(completion)
        self.sent.append(Sent(spec=spec, handle=handle))
        return handle

    @property
    def last(self) -> Sent:
        return self.sent[-1]


@dataclass
class FakeTimer:
    deadline: float
    callback: Callable[[], None]
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class FakeScheduler(Scheduler):
    """Scheduler with a manual clock."""

    time: float = 0.0
    timers: list[FakeTimer] = field(default_factory=list)

    def now(self) -> float:
        return self.time

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(deadline=self.time + delay, callback=callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [timer for timer in self.timers if not timer.cancelled and not timer.fired]

    def advance(self, seconds: float) -> None:
        """Move the clock forward and fire the timers that are due, in
        deadline order."""
        target = self.time + seconds
        while True:
            due = [timer for timer in self.pending if timer.deadline <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.deadline)
            self.time = max(self.time, timer.deadline)
            timer.fired = True
            timer.callback()
        self.time = target
