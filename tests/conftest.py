"""Shared fixtures: a scripted API backend and a dashboard test client."""
from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from adminpanel.core.config import settings
from adminpanel.core.cookies import SESSION_COOKIE_NAME, encode_session_value
from adminpanel.core.rate_limit import rate_limiter
from adminpanel.core.session import TokenStore
from adminpanel.services.gateway import BackendClient

Handler = Callable[[httpx.Request], httpx.Response]


class StubBackend:
    """Answer backend calls from a route table and remember what was asked."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Any] = {}
        self.calls: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._dispatch)

    def on(self, method: str, path: str, response: Any = None, status: int = 200) -> None:
        """Register a canned JSON answer, an ``httpx.Response`` or a handler callable."""
        if callable(response) or isinstance(response, httpx.Response):
            self.routes[(method.upper(), path)] = response
        else:
            self.routes[(method.upper(), path)] = httpx.Response(status, json=response)

    def _dispatch(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        target = self.routes.get((request.method, request.url.path))
        if target is None:
            return httpx.Response(404, json={"error": f"no stub for {request.method} {request.url.path}"})
        if isinstance(target, httpx.Response):
            return httpx.Response(target.status_code, content=target.content, headers=target.headers)
        return target(request)

    def paths(self, method: str | None = None) -> list[str]:
        return [call.url.path for call in self.calls if method is None or call.method == method]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content.decode()) if request.content else None


@pytest.fixture
def backend() -> StubBackend:
    return StubBackend()


@pytest.fixture
def make_client(backend: StubBackend) -> Callable[..., BackendClient]:
    def factory(credential: str = "") -> BackendClient:
        return BackendClient(TokenStore(credential), base_url="http://backend.test", transport=backend.transport)

    return factory


@pytest.fixture
def web(backend: StubBackend, monkeypatch: pytest.MonkeyPatch):
    """Dashboard client wired to the stub backend, CSRF off and an in-memory admin directory."""
    from main import app

    monkeypatch.setattr(settings, "ENABLE_CSRF", False)
    monkeypatch.setattr(settings, "ADMIN_DIRECTORY_BACKEND", "memory")
    rate_limiter.reset()
    app.state.backend_transport = backend.transport
    app.state.admin_repository = None

    with TestClient(app, follow_redirects=False) as client:
        yield client

    app.state.backend_transport = None
    app.state.admin_repository = None
    rate_limiter.reset()


@pytest.fixture
def signed_in(web: TestClient) -> TestClient:
    web.cookies.set(SESSION_COOKIE_NAME, encode_session_value("valid-token"))
    return web
