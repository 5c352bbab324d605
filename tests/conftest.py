from __future__ import annotations

import pytest

from arespec.core.config import RequestDefaults
from tests.helpers import FakeScheduler, RecordingClient, RecordingTransport

BASE_URL = "https://example.com/"


@pytest.fixture
def defaults() -> RequestDefaults:
    """Create request defaults pointing at the test base URL."""
    return RequestDefaults(base_url=BASE_URL, method="GET")


@pytest.fixture
def transport() -> RecordingTransport:
    """Create a transport recording executions without performing them."""
    return RecordingTransport()


@pytest.fixture
def api() -> RecordingClient:
    """Create an API client recording sent specs."""
    return RecordingClient()


@pytest.fixture
def scheduler() -> FakeScheduler:
    """Create a scheduler with a manual clock starting at 0."""
    return FakeScheduler()
