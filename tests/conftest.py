import json
import os
import sys
from collections.abc import Callable

import httpx
import pytest

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from edgeconfig.core.settings import get_settings  # noqa: E402
from edgeconfig.http_client.client import ApiClient  # noqa: E402

TEST_API_URL = "https://api.test.invalid"


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep every test independent of the developer's environment and .env file."""
    for key in list(os.environ):
        if key.startswith("EDGECONFIG_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("EDGECONFIG_LOGS_DIR", str(tmp_path / "logs"))
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def json_response(status_code: int = 200, payload=None, headers=None) -> httpx.Response:
    """Build a response carrying a JSON body."""
    return httpx.Response(
        status_code,
        content=json.dumps(payload).encode("utf-8") if payload is not None else b"",
        headers={"Content-Type": "application/json", **(headers or {})},
    )


class RecordingHandler:
    """MockTransport handler that records requests and replays queued responses."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._responses: list[httpx.Response | Callable[[httpx.Request], httpx.Response]] = []

    def queue(self, *responses) -> "RecordingHandler":
        self._responses.extend(responses)
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"unexpected request {request.method} {request.url}")
        response = self._responses.pop(0)
        if callable(response):
            return response(request)
        return response

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def respond() -> Callable[..., httpx.Response]:
    """``respond(status, payload, headers=...)`` builds a JSON response."""
    return json_response


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def api_client(handler):
    """ApiClient wired to the recording handler; closed after the test."""
    client = ApiClient(TEST_API_URL, transport=httpx.MockTransport(handler))
    yield client
    client.close()
