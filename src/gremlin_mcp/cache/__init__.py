"""In-memory response caching for gremlin-mcp.

This package provides :class:`ResponseCache`, a transparent caching layer
that keeps successful Gremlin API GET responses in process memory using
:mod:`cachetools`.  Entries are keyed by the full request URL with a
configurable TTL (600 seconds by default).

The cache is owned by :class:`~gremlin_mcp.client.async_client.GremlinClient`
and is controlled by the ``cache`` section of the configuration
(:class:`~gremlin_mcp.models.CacheConfig`).
"""

from gremlin_mcp.cache.cache import ResponseCache

__all__ = ["ResponseCache"]
