r"""Thread-safe transfer progress counters."""

from __future__ import annotations

__all__ = ["Progress"]

import threading


class Progress:
    r"""Progress of one transfer direction (upload or download).

    Counters may be updated from the I/O context and read from any other
    context.

    Args:
        total_unit_count: Expected number of units (bytes). ``0`` means
            unknown.

    Example:
        ```pycon
        >>> from arespec.progress import Progress
        >>> progress = Progress(total_unit_count=200)
        >>> progress.advance(50)
        >>> progress.fraction_completed
        0.25

        ```
    """

    def __init__(self, total_unit_count: int = 0) -> None:
        self._lock = threading.Lock()
        self._total_unit_count = total_unit_count
        self._completed_unit_count = 0

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(total_unit_count={self.total_unit_count}, "
            f"completed_unit_count={self.completed_unit_count})"
        )

    @property
    def total_unit_count(self) -> int:
        with self._lock:
            return self._total_unit_count

    @property
    def completed_unit_count(self) -> int:
        with self._lock:
            return self._completed_unit_count

    @property
    def fraction_completed(self) -> float:
        """Completed fraction in ``[0, 1]``, ``0.0`` while the total is
        unknown."""
        with self._lock:
            if self._total_unit_count <= 0:
                return 0.0
            return min(self._completed_unit_count / self._total_unit_count, 1.0)

    @property
    def is_finished(self) -> bool:
        with self._lock:
            return 0 < self._total_unit_count <= self._completed_unit_count

    def set_total(self, total_unit_count: int) -> None:
        with self._lock:
            self._total_unit_count = total_unit_count

    def advance(self, unit_count: int) -> None:
        with self._lock:
            self._completed_unit_count += unit_count

    def set_completed(self, unit_count: int) -> None:
        with self._lock:
            self._completed_unit_count = unit_count

    def finish(self) -> None:
        """Mark the transfer as complete, fixing the total to the completed
        count if the total was unknown."""
        with self._lock:
            if self._total_unit_count <= 0:
                self._total_unit_count = self._completed_unit_count
            else:
                self._completed_unit_count = self._total_unit_count
