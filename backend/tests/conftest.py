"""Pytest config: PYTHONPATH, env, fake upstreams and app factory for tests."""
import os
import sys
import tempfile
from pathlib import Path

import httpx
import pytest

root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(root))
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="hello-weather-logs-"))

from fastapi.testclient import TestClient

from hello_weather.server import create_app
from hello_weather.core.config_app import Settings
from hello_weather.core.http_client import get_http_client

SETTINGS_ENV = ("HOST", "PORT", "WEATHER_MODE", "WEATHER_UNITS", "GEOCODING_URL",
                "WEATHER_URL", "HTTP_TIMEOUT", "ERROR_STATUS_CODES")


class UpstreamStub:
    """Fake OpenWeather: path -> (status, body) or exception; records every request."""

    def __init__(self):
        self.routes = {}
        self.calls: list[httpx.Request] = []

    def reply(self, path: str, status_code: int = 200, json=None, content: bytes = None):
        self.routes[path] = (status_code, json, content)

    def fail(self, path: str, exc_type=httpx.ConnectError, message: str = "connection refused"):
        self.routes[path] = (exc_type, message)

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [c for c in self.calls if c.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"cod": "404", "message": "no stub"})
        if len(route) == 2:
            exc_type, message = route
            raise exc_type(message, request=request)
        status_code, json, content = route
        if content is not None:
            return httpx.Response(status_code, content=content)
        return httpx.Response(status_code, json=json)


@pytest.fixture
def make_settings(monkeypatch):
    def _make(**env) -> Settings:
        for name in SETTINGS_ENV:
            monkeypatch.delenv(name, raising=False)
        for name, value in env.items():
            monkeypatch.setenv(name, value)
        return Settings()
    return _make


@pytest.fixture
def upstream():
    return UpstreamStub()


@pytest.fixture
def make_client(make_settings, upstream):
    def _make(**env) -> TestClient:
        app = create_app(make_settings(**env))

        async def _client_override():
            async with httpx.AsyncClient(transport=httpx.MockTransport(upstream)) as client:
                yield client

        app.dependency_overrides[get_http_client] = _client_override
        return TestClient(app)
    return _make
