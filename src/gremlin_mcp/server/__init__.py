"""MCP server wiring.

:func:`create_server` registers the tool and resource handlers from
:mod:`gremlin_mcp.server.tools` and :mod:`gremlin_mcp.server.resources` on a
low-level :class:`mcp.server.Server`.  :func:`run_stdio` opens the shared
:class:`~gremlin_mcp.client.GremlinClient` and serves the protocol over
stdin/stdout until the peer closes the stream.

Handler exceptions are turned into error results by the MCP runtime, so a
failing tool never stops the server.
"""

from __future__ import annotations

from typing import Any, Optional

from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server
from pydantic import AnyUrl

from gremlin_mcp import __version__
from gremlin_mcp.client import GremlinApi, GremlinClient
from gremlin_mcp.models import ServerConfig
from gremlin_mcp.output import get_output
from gremlin_mcp.server import resources, tools

SERVER_NAME = "Gremlin Inc Server"


def create_server(api: GremlinApi) -> Server:
    """Build an MCP server whose handlers all share *api*."""
    server: Server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        return tools.list_tools()

    @server.call_tool()
    async def handle_call_tool(
        name: str, arguments: Optional[dict[str, Any]]
    ) -> list[types.TextContent]:
        return await tools.call_tool(api, name, arguments)

    @server.list_resources()
    async def handle_list_resources() -> list[types.Resource]:
        return await resources.list_resources(api)

    @server.list_resource_templates()
    async def handle_list_resource_templates() -> list[types.ResourceTemplate]:
        return resources.list_resource_templates()

    @server.read_resource()
    async def handle_read_resource(uri: AnyUrl):
        return await resources.read_resource(api, str(uri))

    return server


async def run_stdio(config: ServerConfig) -> None:
    """Serve MCP over stdio with a client built from *config*."""
    output = get_output()
    async with GremlinClient(config) as client:
        server = create_server(GremlinApi(client))
        output.info(f"{SERVER_NAME} {__version__} listening on stdio ({config.base_url})")
        if not client.cache.enabled:
            output.warning("Response cache disabled; every call reaches the Gremlin API")
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
        output.debug(f"stdio stream closed, shutting down (cache: {client.cache.stats()})")
