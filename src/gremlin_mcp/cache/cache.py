"""In-memory response caching for GET requests.

Uses :class:`cachetools.TTLCache` to keep decoded JSON bodies of successful
Gremlin API responses for a fixed time-to-live (600 s by default).  Only GET
requests are cached; every other method is passed through.

Cache keys are the fully-built request URL strings, query string included.
No normalisation happens: two URLs that differ only in parameter order are
two different entries.

Expired entries are dropped lazily on access, and the oldest entries are
evicted once ``max_entries`` is reached.  A lock makes each operation
atomic so that concurrent tool invocations cannot corrupt the mapping;
nothing else is serialised, so concurrent misses on the same URL each fetch
and store independently (last writer wins).

See Also:
    :class:`~gremlin_mcp.models.CacheConfig` -- the Pydantic model that
    controls ``enabled``, ``ttl_seconds`` and ``max_entries``.
"""

from __future__ import annotations

import copy
import threading
import time
from typing import Any, Callable, Optional

from cachetools import TTLCache

from gremlin_mcp.models import CacheConfig


class ResponseCache:
    """Process-local cache of decoded GET response bodies.

    Values are deep-copied on the way in and on the way out, so a caller
    that trims a returned payload never alters what later callers see.

    Args:
        config: Cache configuration (``enabled``, ``ttl_seconds``,
            ``max_entries``).
        timer: Clock used for expiry; defaults to :func:`time.monotonic`.

    Example::

        from gremlin_mcp.cache import ResponseCache
        from gremlin_mcp.models import CacheConfig

        cache = ResponseCache(CacheConfig(ttl_seconds=600))
        cache.set("GET", "https://api.gremlin.com/v1/teams", [{"identifier": "t1"}])
        hit = cache.get("GET", "https://api.gremlin.com/v1/teams")
    """

    def __init__(
        self,
        config: CacheConfig,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._lock = threading.Lock()
        self._cache: Optional[TTLCache] = None
        if config.enabled:
            self._cache = TTLCache(
                maxsize=config.max_entries,
                ttl=config.ttl_seconds,
                timer=timer,
            )

    @property
    def enabled(self) -> bool:
        return self._cache is not None

    def get(self, method: str, url: str) -> Optional[Any]:
        """Look up a cached body.

        Args:
            method: HTTP method.  Non-GET methods always miss.
            url: The full request URL.

        Returns:
            A copy of the cached value, or ``None`` on a miss, on expiry, or
            when caching is disabled.
        """
        if self._cache is None or method.upper() != "GET":
            return None
        with self._lock:
            value = self._cache.get(url)
        if value is None:
            return None
        return copy.deepcopy(value)

    def set(self, method: str, url: str, value: Any) -> None:
        """Store a decoded body under *url*, replacing any previous entry.

        Non-GET methods, JSON ``null`` bodies and disabled caches are
        silently ignored.
        """
        if self._cache is None or method.upper() != "GET" or value is None:
            return
        stored = copy.deepcopy(value)
        with self._lock:
            self._cache[url] = stored

    def clear(self) -> None:
        """Remove all entries."""
        if self._cache is None:
            return
        with self._lock:
            self._cache.clear()

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            ``{"enabled": False}`` when disabled, otherwise ``enabled``,
            ``size`` (unexpired entries), ``max_entries`` and ``ttl_seconds``.
        """
        if self._cache is None:
            return {"enabled": False}
        with self._lock:
            self._cache.expire()
            size = len(self._cache)
        return {
            "enabled": True,
            "size": size,
            "max_entries": self._config.max_entries,
            "ttl_seconds": self._config.ttl_seconds,
        }

    def close(self) -> None:
        """Drop all entries and release memory."""
        self.clear()
