r"""Single-shot delayed callbacks.

Polling tasks arm timers through a ``Scheduler`` instead of sleeping, so
every callback runs on the scheduler's context and any pending timer can
be cancelled.
"""

from __future__ import annotations

__all__ = ["LoopScheduler", "Scheduler", "TimerHandle"]

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable


class TimerHandle(Protocol):
    """A pending delayed callback."""

    def cancel(self) -> None: ...


class Scheduler(ABC):
    """Clock and single-shot timer source of one scheduling context."""

    @abstractmethod
    def now(self) -> float:
        """Return a monotonic timestamp in seconds."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Invoke ``callback`` once after ``delay`` seconds.

        Args:
            delay: Delay in seconds.
            callback: The function to invoke.

        Returns:
            A handle whose ``cancel()`` prevents the invocation.
        """


class LoopScheduler(Scheduler):
    r"""Scheduler backed by an asyncio event loop.

    Args:
        loop: The event loop. Defaults to the running loop.

    Example:
        ```pycon
        >>> import asyncio
        >>> from arespec.scheduling import LoopScheduler
        >>> async def main():
        ...     fired = asyncio.Event()
        ...     LoopScheduler().call_later(0.01, fired.set)
        ...     await fired.wait()
        ...     return fired.is_set()
        ...
        >>> asyncio.run(main())
        True

        ```
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop if loop is not None else asyncio.get_running_loop()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def now(self) -> float:
        return self._loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return self._loop.call_later(delay, callback)
