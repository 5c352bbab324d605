from __future__ import annotations

from coola.equality import objects_are_equal

from arespec.metrics import TaskError, TaskMetrics, TransmissionProgress
from arespec.progress import Progress

##########################################
#     Tests for TransmissionProgress     #
##########################################


def test_transmission_progress_from_progress() -> None:
    progress = Progress(total_unit_count=100)
    progress.advance(40)
    assert TransmissionProgress.from_progress(progress) == TransmissionProgress(
        total_unit_count=100, completed_unit_count=40
    )


def test_transmission_progress_from_progress_unknown_total() -> None:
    assert TransmissionProgress.from_progress(Progress()) is None
    assert TransmissionProgress.from_progress(None) is None


###############################
#     Tests for TaskError     #
###############################


def test_task_error_from_exception() -> None:
    assert TaskError.from_exception(ValueError("boom")) == TaskError(
        type="ValueError", message="boom"
    )


#################################
#     Tests for TaskMetrics     #
#################################


def test_task_metrics_duration() -> None:
    metrics = TaskMetrics(url="https://example.com/", method="GET", start_time=1.0, end_time=3.5)
    assert metrics.duration == 2.5


def test_task_metrics_to_dict() -> None:
    metrics = TaskMetrics(
        url="https://example.com/",
        method="POST",
        start_time=1.0,
        end_time=2.0,
        status_code=201,
        request_body_bytes=12,
        response_body_bytes=30,
        upload_progress=TransmissionProgress(total_unit_count=12, completed_unit_count=12),
        error=TaskError(type="DecodingError", message="bad payload"),
    )
    assert objects_are_equal(
        metrics.to_dict(),
        {
            "url": "https://example.com/",
            "method": "POST",
            "start_time": 1.0,
            "end_time": 2.0,
            "status_code": 201,
            "redirect_count": 0,
            "request_body_bytes": 12,
            "response_body_bytes": 30,
            "upload_progress": {"total_unit_count": 12, "completed_unit_count": 12},
            "download_progress": None,
            "error": {"type": "DecodingError", "message": "bad payload"},
        },
    )
