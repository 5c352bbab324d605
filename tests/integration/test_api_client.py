r"""End-to-end tests sending requests through ``SimpleAPIClient`` and
``HttpxTransport`` against an in-memory httpx transport."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

import httpx
import pytest

from arespec import (
    APIPollingTask,
    BlockCoordinator,
    EventHandler,
    Finished,
    JsonEncoded,
    Multipart,
    PollingConfig,
    PollingTimeoutError,
    Progressing,
    QueryItem,
    RequestCancelledError,
    RequestDefaults,
    RequestSpec,
    SimpleAPIClient,
    Success,
    TransportError,
    UrlEncoded,
    perform,
    send_async,
    string_item,
)
from arespec.callbacks import MetricsInfo, RequestFailureInfo
from arespec.transport import HttpxTransport


@dataclass
class TaskCreated:
    id: str


@dataclass
class TaskStatus:
    done: bool
    error: Optional[str] = None


class Recorder(EventHandler):
    def __init__(self) -> None:
        self.failures: list[RequestFailureInfo] = []
        self.metrics: list[MetricsInfo] = []

    def on_request_failure(self, info: RequestFailureInfo) -> None:
        self.failures.append(info)

    def on_metrics(self, info: MetricsInfo) -> None:
        self.metrics.append(info)


def make_client(handler: object) -> SimpleAPIClient:
    transport = HttpxTransport(
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler))  # type: ignore[arg-type]
    )
    return SimpleAPIClient(
        transport,
        RequestDefaults(
            base_url="https://example.com/api/",
            method="GET",
            headers={"Accept": "application/json"},  # type: ignore[arg-type]
            query_items=[QueryItem("name", "YuAo")],
            parameters={"type": "0"},
        ),
    )


@pytest.mark.asyncio
async def test_perform_get_with_defaults() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "1"})

    client = make_client(handler)
    spec = RequestSpec(
        path="/tasks", response_type=TaskCreated, query_items=[QueryItem("id", "123")]
    )

    assert await perform(client, spec) == TaskCreated(id="1")
    assert str(seen[0].url) == "https://example.com/api/tasks?name=YuAo&id=123&type=0"
    assert seen[0].headers["Accept"] == "application/json"


@pytest.mark.asyncio
async def test_perform_json_body_merges_defaults() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=request.content)

    client = make_client(handler)
    spec = RequestSpec(path="/echo", method="POST", parameters=JsonEncoded({"id": 123}))

    assert await perform(client, spec) == {"type": "0", "id": 123}


@pytest.mark.asyncio
async def test_perform_url_encoded_body_merges_defaults() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"body": request.content.decode()})

    client = make_client(handler)
    spec = RequestSpec(path="/form", method="POST", parameters=UrlEncoded({"id": 123}))

    assert await perform(client, spec) == {"body": "type=0&id=123"}


@pytest.mark.asyncio
async def test_perform_multipart_merges_defaults() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"body": request.content.decode()})

    client = make_client(handler)
    spec = RequestSpec(
        path="/upload",
        method="POST",
        parameters=Multipart((string_item("", name="id"), string_item("1", name="type"))),
    )

    body = (await perform(client, spec))["body"]
    assert body.count('name="type"') == 1
    assert body.index('name="id"') < body.index('name="type"')


@pytest.mark.asyncio
async def test_perform_reports_failures_to_event_handlers() -> None:
    client = make_client(lambda request: httpx.Response(500, json={"error": "boom"}))
    recorder = Recorder()
    client.add_event_handler(recorder)

    with pytest.raises(TransportError, match="failed with status 500"):
        await perform(client, RequestSpec(path="/broken"))

    (failure,) = recorder.failures
    assert failure.client is client
    assert failure.url == "https://example.com/api/broken?name=YuAo"
    assert failure.response_data == b'{"error":"boom"}'
    (metrics,) = recorder.metrics
    assert metrics.task_metrics.status_code == 500


@pytest.mark.asyncio
async def test_send_async_cancel() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.Event().wait()
        return httpx.Response(200)

    client = make_client(handler)
    request = send_async(client, RequestSpec(path="/slow"))
    await asyncio.sleep(0.01)

    request.cancel()

    with pytest.raises(RequestCancelledError):
        await request


@pytest.mark.asyncio
async def test_perform_mock() -> None:
    client = make_client(lambda request: httpx.Response(500))
    spec = RequestSpec(path="/", mock=Success(TaskCreated(id="mocked")))
    assert await perform(client, spec) == TaskCreated(id="mocked")


@pytest.mark.asyncio
async def test_polling_task_end_to_end() -> None:
    checks = iter([{"done": False}, {"done": False}, {"done": True}])
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        if request.method == "POST":
            return httpx.Response(200, json={"id": "t1"})
        return httpx.Response(200, json=next(checks))

    client = make_client(handler)
    coordinator = BlockCoordinator(
        check_request_maker=lambda task: RequestSpec(
            path=f"/tasks/{task.id}", response_type=TaskStatus
        ),
        check_result_handler=lambda status: (
            Finished(Success("finished")) if status.done else Progressing()
        ),
    )

    result = await APIPollingTask.perform(
        client,
        RequestSpec(path="/tasks", method="POST", response_type=TaskCreated),
        coordinator,
        PollingConfig(task_timeout=5.0, check_interval=0.01),
    )

    assert result == "finished"
    assert paths == ["/api/tasks", "/api/tasks/t1", "/api/tasks/t1", "/api/tasks/t1"]


@pytest.mark.asyncio
async def test_polling_task_timeout_end_to_end() -> None:
    client = make_client(
        lambda request: httpx.Response(
            200, json={"id": "t1"} if request.method == "POST" else {"done": False}
        )
    )
    cancelled: list[bool] = []
    coordinator = BlockCoordinator(
        check_request_maker=lambda task: RequestSpec(path=f"/tasks/{task['id']}"),
        check_result_handler=lambda status: Progressing(),
        cancellation_handler=lambda: cancelled.append(True),
    )

    with pytest.raises(PollingTimeoutError, match="did not finish within 0.1 seconds"):
        await APIPollingTask.perform(
            client,
            RequestSpec(path="/tasks", method="POST"),
            coordinator,
            PollingConfig(task_timeout=0.1, check_interval=0.01),
        )
    assert cancelled == [True]
