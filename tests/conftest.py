"""Shared test fixtures for the Kilometracker edge."""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from kilometracker.config import Settings
from kilometracker.main import create_app
from kilometracker.proxy.engine import ProxyEngine

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable
    from pathlib import Path

TEST_BACKEND_URL = "http://backend.test"
TEST_TOKEN = "session-token-abc"


@dataclass
class FakeBackend:
    """Stand-in for the external API: records requests, replays canned responses.

    ``responses`` maps ``(method, path)`` to a response factory or a fixed
    ``httpx.Response``. Unmatched calls answer 404 with a JSON message.
    """

    responses: dict[tuple[str, str], Any] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)

    def reply(self, method: str, path: str, response: httpx.Response | Callable[..., Any]) -> None:
        self.responses[(method, path)] = response

    def reply_json(self, method: str, path: str, body: Any, status_code: int = 200) -> None:
        self.reply(method, path, httpx.Response(status_code, json=body))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        canned = self.responses.get((request.method, request.url.path))
        if canned is None:
            return httpx.Response(404, json={"message": "Not found"})
        if callable(canned):
            return canned(request)
        return canned

    @property
    def last_request(self) -> httpx.Request:
        assert self.requests, "backend was never called"
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last_request.content)


@asynccontextmanager
async def create_test_client(
    settings: Settings, backend: FakeBackend
) -> AsyncGenerator[AsyncClient]:
    """Create an HTTP test client with the backend replaced by ``backend``.

    Wires up what the lifespan would (ASGITransport does not trigger it).
    """
    app = create_app(settings)
    settings.validate_runtime()
    proxy = ProxyEngine(settings.api_base_url, transport=httpx.MockTransport(backend.handler))
    app.state.proxy = proxy

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    await proxy.aclose()


def session_headers(token: str = TEST_TOKEN) -> dict[str, str]:
    return {"Cookie": f"token={token}"}


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create test settings pointing at the fake backend."""
    return Settings(
        _env_file=None,
        debug=True,
        api_base_url=TEST_BACKEND_URL,
        frontend_dir=tmp_path / "frontend",
    )


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def client(test_settings: Settings, backend: FakeBackend) -> AsyncGenerator[AsyncClient]:
    """Create test HTTP client."""
    async with create_test_client(test_settings, backend) as ac:
        yield ac
