r"""Metrics collected for each performed request.

``TaskMetrics`` are built by the transport once a request finishes and
handed to the registered event handlers through ``on_metrics``.
"""

from __future__ import annotations

__all__ = ["TaskError", "TaskMetrics", "TransmissionProgress"]

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from arespec.progress import Progress


@dataclass(frozen=True)
class TransmissionProgress:
    """Snapshot of a ``Progress``.

    Attributes:
        total_unit_count: Expected number of bytes.
        completed_unit_count: Number of bytes transferred.
    """

    total_unit_count: int
    completed_unit_count: int

    @classmethod
    def from_progress(cls, progress: Progress | None) -> TransmissionProgress | None:
        """Snapshot ``progress``, or return ``None`` when its total is
        unknown."""
        if progress is None or progress.total_unit_count <= 0:
            return None
        return cls(
            total_unit_count=progress.total_unit_count,
            completed_unit_count=progress.completed_unit_count,
        )


@dataclass(frozen=True)
class TaskError:
    """Description of the error that ended a request.

    Attributes:
        type: The exception class name.
        message: The exception message.
    """

    type: str
    message: str

    @classmethod
    def from_exception(cls, error: BaseException) -> TaskError:
        return cls(type=type(error).__name__, message=str(error))


@dataclass(frozen=True)
class TaskMetrics:
    r"""Timing and transfer metrics of one request.

    Attributes:
        url: The requested URL.
        method: The HTTP method.
        start_time: Wall-clock time the request started (seconds since epoch).
        end_time: Wall-clock time the request finished.
        status_code: The response status code, if a response was received.
        redirect_count: Number of redirects followed.
        request_body_bytes: Size of the request body, if known.
        response_body_bytes: Number of response body bytes received.
        upload_progress: Upload progress snapshot, if the total was known.
        download_progress: Download progress snapshot, if the total was known.
        error: The error that ended the request, if any.

    Example:
        ```pycon
        >>> from arespec.metrics import TaskMetrics
        >>> metrics = TaskMetrics(
        ...     url="https://example.com/", method="GET", start_time=10.0, end_time=10.5
        ... )
        >>> metrics.duration
        0.5

        ```
    """

    url: str
    method: str
    start_time: float
    end_time: float
    status_code: int | None = None
    redirect_count: int = 0
    request_body_bytes: int | None = None
    response_body_bytes: int = 0
    upload_progress: TransmissionProgress | None = None
    download_progress: TransmissionProgress | None = None
    error: TaskError | None = None

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def to_dict(self) -> dict[str, Any]:
        """Convert the metrics to a JSON-serializable dictionary."""
        return asdict(self)
