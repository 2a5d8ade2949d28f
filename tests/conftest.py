"""Shared test fixtures for feedclient.

Provides an isolated config environment, an opened credential store, a
scripted fake backend served through :class:`httpx.MockTransport`, and
output-state management. These fixtures are automatically discovered by
pytest and available to all test modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from feedclient.auth.credential_store import CredentialStore
from feedclient.cache.cache import ResponseCache
from feedclient.models import CacheConfig, ClientConfig, Credential, UploadFile
from feedclient.output import OutputFormat, OutputManager, reset_output, set_output


BASE_URL = "http://backend.test/api"

Handler = Callable[[httpx.Request], httpx.Response]


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Fake backend
# ---------------------------------------------------------------------------


class FakeBackend:
    """Scripted stand-in for the feed backend.

    Routes are keyed by ``(METHOD, path)`` with the path relative to the API
    root. Protected routes answer 401 unless the request carries
    ``Bearer <valid_token>``. ``POST /auth/refresh-token`` is built in: it
    accepts :attr:`valid_refresh`, mints a new access token and makes it the
    only valid one.
    """

    def __init__(self) -> None:
        self.valid_token = "access-0"
        self.valid_refresh = "refresh-0"
        self.refresh_status = 200
        self.exchanges = 0
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], tuple[Handler, bool]] = {}

    def route(
        self,
        method: str,
        path: str,
        json_body: Any = None,
        status: int = 200,
        handler: Optional[Handler] = None,
        protected: bool = True,
    ) -> None:
        if handler is None:
            def _respond(request: httpx.Request) -> httpx.Response:
                if json_body is None:
                    return httpx.Response(status)
                return httpx.Response(status, json=json_body)

            handler = _respond
        self._routes[(method.upper(), path)] = (handler, protected)

    def calls(self, method: str, path: str) -> int:
        return sum(
            1
            for r in self.requests
            if r.method == method.upper() and _relative(r) == path
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = _relative(request)

        if request.method == "POST" and path == "/auth/refresh-token":
            return self._refresh(request)

        entry = self._routes.get((request.method, path))
        if entry is None:
            return httpx.Response(404, json={"message": f"No route for {path}"})
        handler, protected = entry
        if protected and request.headers.get("Authorization") != f"Bearer {self.valid_token}":
            return httpx.Response(401, json={"message": "Unauthorized"})
        return handler(request)

    def _refresh(self, request: httpx.Request) -> httpx.Response:
        self.exchanges += 1
        if self.refresh_status != 200:
            return httpx.Response(self.refresh_status, json={"message": "Refresh rejected"})
        body = json.loads(request.content)
        if body.get("refreshToken") != self.valid_refresh:
            return httpx.Response(401, json={"message": "Invalid refresh token"})
        self.valid_token = f"access-{self.exchanges}"
        return httpx.Response(200, json={"token": self.valid_token})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def _relative(request: httpx.Request) -> str:
    path = request.url.path
    return path[len("/api"):] if path.startswith("/api") else path


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


# ---------------------------------------------------------------------------
# Stores and config
# ---------------------------------------------------------------------------


@pytest.fixture
def client_config(tmp_path: Path) -> ClientConfig:
    """A config pointing at the fake backend with credentials under tmp_path."""
    return ClientConfig(base_url=BASE_URL, credentials_dir=str(tmp_path / "credentials"))


@pytest.fixture
def credentials(tmp_path: Path) -> CredentialStore:
    """An opened, empty credential store in a temporary directory."""
    store = CredentialStore(tmp_path / "credentials")
    store.init()
    yield store
    store.close()


@pytest.fixture
def logged_in(credentials: CredentialStore, backend: FakeBackend) -> CredentialStore:
    """Credential store holding the backend's current valid token pair."""
    credentials.set(
        Credential(
            access_token=backend.valid_token,
            refresh_token=backend.valid_refresh,
            subject="u1",
        ),
        user={"_id": "u1", "username": "ada"},
    )
    return credentials


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> ResponseCache:
    return ResponseCache(CacheConfig(ttl_seconds=300, feed_ttl_seconds=120), clock=clock)


@pytest.fixture
def make_image() -> Callable[..., UploadFile]:
    """Factory for in-memory image uploads of a given size."""

    def _make(size: int = 16, name: str = "photo.png", content_type: str = "image/png") -> UploadFile:
        return UploadFile(filename=name, content_type=content_type, content=b"\x89" * size)

    return _make


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path so
    that tests never touch real user config or credentials, and clears the
    FEEDCLIENT_* environment variables.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("feedclient.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["FEEDCLIENT_BASE_URL", "FEEDCLIENT_TIMEOUT"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()


