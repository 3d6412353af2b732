"""Pytest configuration and shared fixtures.

Organization:
    - Environment Fixtures: keep host AI_/LOG_ variables out of settings
    - HTTP Fixtures: httpx clients backed by MockTransport that record requests
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from modelhub.core.settings.loader import clear_all_caches


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Strip AI_/LOG_ variables and run from a directory without a .env file."""
    for key in list(os.environ):
        if key.startswith(("AI_", "LOG_")) or key in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_all_caches()
    yield
    clear_all_caches()


# ============================================================================
# HTTP Fixtures
# ============================================================================


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last_request.content)


@pytest.fixture
def mock_http():
    """Build an ``httpx.AsyncClient`` whose responses come from a handler.

    Usage:
        client, transport = mock_http(lambda request: httpx.Response(200, json={...}))
    """

    def factory(
        handler: Callable[[httpx.Request], httpx.Response],
    ) -> tuple[httpx.AsyncClient, RecordingTransport]:
        transport = RecordingTransport(handler)
        return httpx.AsyncClient(transport=transport), transport

    return factory


@pytest.fixture
def json_response():
    """Return a handler that answers every request with the same JSON body."""

    def factory(body: Any, status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
        return lambda request: httpx.Response(status_code, json=body)

    return factory
