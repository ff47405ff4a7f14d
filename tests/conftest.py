"""Shared test fixtures for gremlin-mcp.

Provides output-state isolation, a clean ``GREMLIN_*`` environment with a
known API key, and helpers for building a :class:`GremlinClient` whose HTTP
traffic is served by an in-process :class:`httpx.MockTransport`.
"""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from gremlin_mcp.cache import ResponseCache
from gremlin_mcp.client import GremlinApi, GremlinClient
from gremlin_mcp.models import CacheConfig, RequestConfig, ServerConfig
from gremlin_mcp.output import OutputManager, reset_output, set_output

API_KEY = "test-api-key"
BASE_URL = "https://api.gremlin.test/v1"


class FakeTimer:
    """Manually advanced clock for cache expiry tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time, which go stale once CliRunner or capfd swap them.
    """
    yield
    reset_output()


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet, colourless OutputManager as the global output."""
    output = OutputManager(no_color=True, quiet=True)
    set_output(output)
    return output


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every GREMLIN_* variable that could leak into a test."""
    for var in [
        "GREMLIN_API_KEY",
        "GREMLIN_MCP_CONFIG",
        "GREMLIN_MCP_BASE_URL",
        "GREMLIN_MCP_API_KEY_SOURCE",
        "GREMLIN_MCP_MAX_RETRIES",
        "GREMLIN_MCP_TIMEOUT",
        "GREMLIN_MCP_RETRY_BACKOFF",
        "GREMLIN_MCP_CACHE_TTL",
        "GREMLIN_MCP_CACHE_MAX_ENTRIES",
        "GREMLIN_MCP_NO_CACHE",
    ]:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


@pytest.fixture
def api_key(clean_env: pytest.MonkeyPatch) -> str:
    """Set GREMLIN_API_KEY to a known value."""
    clean_env.setenv("GREMLIN_API_KEY", API_KEY)
    return API_KEY


# ---------------------------------------------------------------------------
# Client helpers
# ---------------------------------------------------------------------------


def make_config(max_retries: int = 3, retry_backoff: float = 0.0, **cache: Any) -> ServerConfig:
    return ServerConfig(
        base_url=BASE_URL,
        request=RequestConfig(timeout=5, max_retries=max_retries, retry_backoff=retry_backoff),
        cache=CacheConfig(**cache),
    )


def json_response(data: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code=status_code, json=data)


class Recorder:
    """MockTransport handler that records requests and replays a script.

    Each entry of *responses* is either an :class:`httpx.Response`, an
    exception instance to raise, or a callable taking the request.  The
    last entry repeats once the script runs out.
    """

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.responses)) - 1
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        if callable(response) and not isinstance(response, httpx.Response):
            return response(request)
        return response

    @property
    def calls(self) -> int:
        return len(self.requests)

    @property
    def urls(self) -> list[str]:
        return [str(request.url) for request in self.requests]


@pytest.fixture
def make_client(api_key: str, quiet_output: OutputManager) -> Callable[..., GremlinClient]:
    """Factory building a GremlinClient served by a MockTransport."""

    def _factory(
        handler: Callable[[httpx.Request], httpx.Response],
        config: ServerConfig | None = None,
        cache: ResponseCache | None = None,
    ) -> GremlinClient:
        return GremlinClient(
            config or make_config(),
            cache=cache,
            transport=httpx.MockTransport(handler),
        )

    return _factory


@pytest.fixture
def make_api(make_client: Callable[..., GremlinClient]) -> Callable[..., Any]:
    """Factory yielding an async context manager around a GremlinApi."""
    from contextlib import asynccontextmanager

    @asynccontextmanager
    async def _factory(handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any):
        async with make_client(handler, **kwargs) as client:
            yield GremlinApi(client)

    return _factory
