"""Shared test fixtures."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock

import pytest

from llmbridge import Client, Tool, ToolParameters


@pytest.fixture
def weather_tool() -> Tool:
    return Tool(
        name="get_weather",
        description="Get current weather for a city",
        parameters=ToolParameters(
            properties={"city": {"type": "string"}},
            required=("city",),
        ),
    )


@pytest.fixture
def client() -> Client:
    return Client("http://llm.test/v1", api_key="key-test")


class MockResponse:
    """Mimics ``requests.Response`` for testing the transport and client."""

    def __init__(
        self,
        json_data: Any = None,
        status_code: int = 200,
        text: str = "",
        lines: list[str] | None = None,
        headers: dict[str, str] | None = None,
        url: str = "http://llm.test",
    ) -> None:
        self.status_code = status_code
        if not text and json_data is not None:
            text = json.dumps(json_data)
        self.text = text
        self.ok = 200 <= status_code < 300
        self._lines = lines if lines is not None else text.split("\n")
        self.headers: dict[str, str] = headers or {}
        self.url = url
        self.closed = False

    def json(self) -> Any:
        return json.loads(self.text)

    def iter_lines(self, **_kwargs: object) -> list[str]:
        return self._lines

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def mock_post(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Monkeypatch ``requests.Session.post`` and return the mock."""
    mock = MagicMock()
    monkeypatch.setattr("requests.Session.post", mock)
    return mock


@pytest.fixture
def mock_get(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Monkeypatch ``requests.Session.get`` and return the mock."""
    mock = MagicMock()
    monkeypatch.setattr("requests.Session.get", mock)
    return mock
