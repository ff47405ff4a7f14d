"""Asynchronous Gremlin API client with response caching and bounded retry.

This module provides :class:`GremlinClient`, the single HTTP dependency of
every tool and resource handler.  It wraps :class:`httpx.AsyncClient` and
layers on:

- **URL construction** -- ``base_url/path`` plus query parameters appended
  in the caller's insertion order.  The resulting string is also the cache
  key.
- **Response caching** -- successful GET bodies are kept in a
  :class:`~gremlin_mcp.cache.ResponseCache` for ten minutes; a hit
  short-circuits all network I/O and retry accounting.
- **Auth injection** -- ``Authorization: Key <token>``, with the token read
  from the configured credential source on every call.
- **Bounded retry** -- up to ``max_retries`` sequential attempts.  Transport
  failures, non-2xx statuses and undecodable bodies are all retried the
  same way; once attempts run out, :class:`~gremlin_mcp.exceptions.RequestFailed`
  wraps the last error.  Attempts follow each other immediately unless
  ``retry_backoff`` is configured.

The client must be used as an async context manager so that the underlying
connection pool is opened and closed exactly once::

    async with GremlinClient(config) as client:
        teams = await client.request("teams")
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import httpx

from gremlin_mcp import __version__
from gremlin_mcp.cache import ResponseCache
from gremlin_mcp.config import resolve_credential
from gremlin_mcp.exceptions import (
    GremlinMcpError,
    HttpStatusError,
    InvalidUsageError,
    ParseError,
    RequestFailed,
    TransportError,
)
from gremlin_mcp.models import ServerConfig
from gremlin_mcp.output import get_output

USER_AGENT = f"gremlin-mcp/{__version__}"


class GremlinClient:
    """Caching, retrying HTTP client for the Gremlin API.

    Args:
        config: Effective server configuration (base URL, credential source,
            request and cache settings).
        cache: Optional pre-built cache.  When ``None`` a
            :class:`~gremlin_mcp.cache.ResponseCache` is created from
            ``config.cache``.
        transport: Optional :mod:`httpx` transport, e.g.
            :class:`httpx.MockTransport` in tests.

    Example::

        async with GremlinClient(config) as client:
            page = await client.request("services", params={"teamId": "abc"})
    """

    def __init__(
        self,
        config: ServerConfig,
        cache: Optional[ResponseCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._cache = cache if cache is not None else ResponseCache(config.cache)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> GremlinClient:
        settings = self._config.request
        self._client = httpx.AsyncClient(
            timeout=settings.timeout,
            verify=settings.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
        self._cache.close()

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def build_url(self, path: str, params: Optional[dict[str, Any]] = None) -> str:
        """Build the absolute request URL, which doubles as the cache key.

        Args:
            path: Path relative to ``base_url``; a leading slash is tolerated.
            params: Query parameters, appended in iteration order.  ``None``
                values are skipped; booleans become ``true``/``false``.

        Returns:
            The URL string, e.g. ``https://api.gremlin.com/v1/services?teamId=abc``.
        """
        base = f"{self._config.base_url.rstrip('/')}/{path.lstrip('/')}"
        query = [
            (key, _param_value(value))
            for key, value in (params or {}).items()
            if value is not None
        ]
        return str(httpx.URL(base, params=query)) if query else str(httpx.URL(base))

    async def request(
        self,
        path: str,
        method: str = "GET",
        params: Optional[dict[str, Any]] = None,
        max_retries: Optional[int] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """Execute one logical request and return the decoded JSON body.

        Args:
            path: Path relative to ``base_url``.
            method: HTTP method.  Only GET responses are cached.
            params: Query parameters (scalars), appended in insertion order.
            max_retries: Number of attempts; defaults to
                ``config.request.max_retries`` and must be at least 1.
            headers: Extra headers that override the defaults.

        Returns:
            The decoded JSON body, from the cache or from the first
            successful attempt.

        Raises:
            InvalidUsageError: If *path* is empty or *max_retries* < 1.
            ConfigError: If the API key cannot be resolved.
            RequestFailed: When every attempt failed; ``last_error`` holds the
                :class:`TransportError`, :class:`HttpStatusError` or
                :class:`ParseError` of the final attempt.
        """
        attempts = self._config.request.max_retries if max_retries is None else max_retries
        if attempts < 1:
            raise InvalidUsageError(f"max_retries must be at least 1, got {attempts}")
        if not path or not path.strip("/"):
            raise InvalidUsageError("A request path is required")

        method = method.upper()
        url = self.build_url(path, params)
        output = get_output()

        cached = self._cache.get(method, url)
        if cached is not None:
            output.debug(f"Cache hit: {method} {url}")
            return cached
        output.debug(f"Cache miss: {method} {url}")

        request_headers = self._build_headers(headers)

        last_error: Optional[GremlinMcpError] = None
        for attempt in range(attempts):
            try:
                data = await self._send(method, url, request_headers)
            except (TransportError, HttpStatusError, ParseError) as exc:
                last_error = exc
                output.debug(
                    f"{method} {url} failed: {exc} (attempt {attempt + 1}/{attempts})"
                )
                if attempt < attempts - 1:
                    await self._backoff(attempt)
                continue

            self._cache.set(method, url, data)
            return data

        assert last_error is not None
        raise RequestFailed(url, attempts, last_error) from last_error

    async def get(self, path: str, **kwargs: Any) -> Any:
        """Send a GET request.  See :meth:`request`."""
        return await self.request(path, method="GET", **kwargs)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _build_headers(self, headers: Optional[dict[str, str]]) -> dict[str, str]:
        token = resolve_credential(self._config.api_key_source)
        merged = {
            "Content-Type": "application/json",
            "Authorization": f"Key {token}",
            "User-Agent": USER_AGENT,
        }
        merged.update(headers or {})
        return merged

    async def _send(self, method: str, url: str, headers: dict[str, str]) -> Any:
        """Perform a single attempt, mapping every failure to a per-attempt error."""
        assert self._client is not None, "Client not initialised -- use as async context manager"

        try:
            response = await self._client.request(method, url, headers=headers)
        except httpx.TransportError as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc

        if not response.is_success:
            raise HttpStatusError(response.status_code, _error_detail(response))

        try:
            return response.json()
        except ValueError as exc:
            raise ParseError(f"Response from {url} is not valid JSON: {exc}") from exc

    async def _backoff(self, attempt: int) -> None:
        base = self._config.request.retry_backoff
        if base <= 0:
            return
        delay = base * 2 ** attempt
        get_output().debug(f"Retrying in {delay:g}s")
        await asyncio.sleep(delay)


def _param_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _error_detail(response: httpx.Response) -> str:
    """Extract a short error message from an error response body."""
    try:
        detail = response.json()
    except ValueError:
        return response.text[:200] if response.text else ""
    if isinstance(detail, dict):
        return str(detail.get("message") or detail.get("error") or detail.get("detail") or "")
    return str(detail)[:200]
