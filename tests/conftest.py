"""
Shared pytest fixtures for x402-agent-tools tests.
"""

from __future__ import annotations

import copy
import json
from typing import Any, Optional

import httpx
import pytest

HEX_KEY = "0x" + "4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"

SAMPLE_DOCUMENT: dict[str, Any] = {
    "wallet": {
        "provider": "cdp-embedded",
        "network": "base-sepolia",
        "privateKey": HEX_KEY,
    },
    "endpoints": [
        {
            "id": "search_web",
            "name": "Web Search",
            "url": "https://api.example.com/search",
            "method": "GET",
            "description": "Search the web and return ranked results",
            "category": "search",
            "parameters": {
                "type": "object",
                "properties": {
                    "q": {"type": "string", "description": "Search query"},
                    "limit": {"type": "number"},
                    "safe": {"type": "boolean"},
                },
                "required": ["q"],
            },
            "estimatedCost": "$0.01",
            "trusted": True,
        },
        {
            "id": "generate_image",
            "name": "Image Generation",
            "url": "https://api.example.com/images",
            "method": "POST",
            "description": "Generate an image from a text prompt",
            "parameters": {
                "type": "object",
                "properties": {
                    "prompt": {"type": "string"},
                    "style": {"type": "string", "enum": ["photo", "sketch"]},
                    "tags": {"type": "array", "items": {"type": "string"}},
                },
                "required": ["prompt"],
            },
            "trusted": True,
        },
        {
            "id": "server_time",
            "name": "Server Time",
            "url": "https://api.example.com/time",
            "method": "GET",
            "description": "Return the current server time in UTC",
            "parameters": {"type": "object"},
            "trusted": True,
        },
        {
            "id": "expensive_video",
            "name": "Video Generation",
            "url": "https://api.example.com/video",
            "method": "POST",
            "description": "Generate a short video clip from a prompt",
            "parameters": {
                "type": "object",
                "properties": {"prompt": {"type": "string"}},
                "required": ["prompt"],
            },
            "estimatedCost": "$0.20",
            "trusted": False,
        },
    ],
}


@pytest.fixture
def sample_document() -> dict[str, Any]:
    """A fresh, valid configuration document for each test."""
    return copy.deepcopy(SAMPLE_DOCUMENT)


@pytest.fixture
def write_config(tmp_path):
    """Write a document to endpoints.json under tmp_path and return the path."""

    def _write(document: Any, name: str = "endpoints.json"):
        path = tmp_path / name
        text = document if isinstance(document, str) else json.dumps(document)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


class MockTransport(httpx.AsyncBaseTransport):
    """
    Configurable async mock transport for httpx.AsyncClient.

    Usage:
        transport = MockTransport()
        transport.add(("GET", "/search"), 200, {"results": []})
        client = httpx.AsyncClient(transport=transport)

    Responses are consumed in FIFO order per route, so enqueueing several
    for the same route plays them back in sequence (useful for retry tests).
    Every request seen is kept in `requests`.
    """

    def __init__(self):
        self._queue: list[tuple[str, str, Any]] = []
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method_path: tuple[str, str],
        status: int,
        body: Any = None,
        headers: Optional[dict[str, str]] = None,
        content: Optional[bytes] = None,
    ) -> "MockTransport":
        method, path = method_path
        response_headers = dict(headers or {})
        if content is None:
            content = json.dumps(body if body is not None else {}).encode()
            response_headers.setdefault("Content-Type", "application/json")
        response = httpx.Response(status_code=status, content=content, headers=response_headers)
        self._queue.append((method.upper(), path, response))
        return self

    def add_exception(self, method_path: tuple[str, str], exc: Exception) -> "MockTransport":
        method, path = method_path
        self._queue.append((method.upper(), path, exc))
        return self

    @property
    def pending(self) -> int:
        return len(self._queue)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method = request.method.upper()
        path = request.url.path
        for i, (m, p, outcome) in enumerate(self._queue):
            if m == method and path == p:
                self._queue.pop(i)
                if isinstance(outcome, Exception):
                    raise outcome
                return outcome
        raise AssertionError(
            f"MockTransport: unexpected request {method} {path}\n"
            f"Remaining queue: {[(m, p) for m, p, _ in self._queue]}"
        )


@pytest.fixture
def transport() -> MockTransport:
    return MockTransport()


@pytest.fixture
def fast_sleep(monkeypatch) -> list[float]:
    """Replace the backoff sleep with a recorder; returns the recorded delays."""
    delays: list[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    monkeypatch.setattr("x402_agent.retry.asyncio.sleep", _sleep)
    return delays


@pytest.fixture
def private_key() -> str:
    """The sample wallet's hex key."""
    return HEX_KEY
