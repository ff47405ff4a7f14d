"""HTTP client module for gremlin-mcp.

Classes:
    :class:`GremlinClient` -- caching, retrying client backed by
        :class:`httpx.AsyncClient`; returns decoded JSON bodies.
    :class:`GremlinApi` -- typed, one-method-per-endpoint facade over a
        :class:`GremlinClient`.

Example::

    from gremlin_mcp.client import GremlinApi, GremlinClient

    async with GremlinClient(config) as client:
        teams = await GremlinApi(client).list_teams()
"""

from gremlin_mcp.client.api import GremlinApi
from gremlin_mcp.client.async_client import GremlinClient

__all__ = ["GremlinClient", "GremlinApi"]
