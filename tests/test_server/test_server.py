"""Tests for the MCP server wiring."""

from __future__ import annotations

import json
from contextlib import asynccontextmanager

import httpx
import pytest
from mcp import types
from mcp.server import Server

from conftest import json_response, make_config
from gremlin_mcp.output import OutputManager, set_output
from gremlin_mcp.server import SERVER_NAME, create_server, run_stdio


def _handler(routes: dict[str, object]):
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/v1/")
        if path not in routes:
            return httpx.Response(500, json={"message": "Internal"})
        return json_response(routes[path])

    return handler


class TestCreateServer:
    @pytest.mark.asyncio
    async def test_name(self, make_api) -> None:
        async with make_api(_handler({})) as api:
            server = create_server(api)
        assert server.name == SERVER_NAME == "Gremlin Inc Server"

    @pytest.mark.asyncio
    async def test_registers_all_handlers(self, make_api) -> None:
        async with make_api(_handler({})) as api:
            server = create_server(api)
        for request_type in [
            types.ListToolsRequest,
            types.CallToolRequest,
            types.ListResourcesRequest,
            types.ListResourceTemplatesRequest,
            types.ReadResourceRequest,
        ]:
            assert request_type in server.request_handlers

    @pytest.mark.asyncio
    async def test_list_tools(self, make_api) -> None:
        async with make_api(_handler({})) as api:
            server = create_server(api)
            handler = server.request_handlers[types.ListToolsRequest]
            result = await handler(types.ListToolsRequest(method="tools/list"))
        assert len(result.root.tools) == 9

    @pytest.mark.asyncio
    async def test_call_tool_success(self, make_api) -> None:
        teams = [{"identifier": "t1", "name": "Core"}]
        async with make_api(_handler({"teams": teams})) as api:
            server = create_server(api)
            handler = server.request_handlers[types.CallToolRequest]
            result = await handler(
                types.CallToolRequest(
                    method="tools/call",
                    params=types.CallToolRequestParams(name="list_teams", arguments={}),
                )
            )
        assert not result.root.isError
        assert json.loads(result.root.content[0].text) == teams

    @pytest.mark.asyncio
    async def test_call_tool_failure_is_error_result(self, make_api) -> None:
        async with make_api(_handler({})) as api:
            server = create_server(api)
            handler = server.request_handlers[types.CallToolRequest]
            result = await handler(
                types.CallToolRequest(
                    method="tools/call",
                    params=types.CallToolRequestParams(name="list_teams", arguments={}),
                )
            )
        assert result.root.isError
        assert "Failed to fetch teams" in result.root.content[0].text

    @pytest.mark.asyncio
    async def test_read_resource(self, make_api) -> None:
        team = {"identifier": "t1", "name": "Core"}
        async with make_api(_handler({"teams/t1": team})) as api:
            server = create_server(api)
            handler = server.request_handlers[types.ReadResourceRequest]
            result = await handler(
                types.ReadResourceRequest(
                    method="resources/read",
                    params=types.ReadResourceRequestParams(uri="gremlin://team/t1"),
                )
            )
        contents = result.root.contents[0]
        assert contents.mimeType == "application/json"
        assert json.loads(contents.text) == team


class TestRunStdio:
    @pytest.fixture
    def fake_stdio(self, monkeypatch):
        served: list[object] = []

        @asynccontextmanager
        async def stdio_server():
            yield "reader", "writer"

        async def run(self, read_stream, write_stream, options) -> None:
            served.append((read_stream, write_stream))

        monkeypatch.setattr("gremlin_mcp.server.stdio_server", stdio_server)
        monkeypatch.setattr(Server, "run", run)
        return served

    @pytest.mark.asyncio
    async def test_serves_and_logs_cache_stats(self, fake_stdio, capfd) -> None:
        set_output(OutputManager(no_color=True, verbose=True))
        await run_stdio(make_config())
        assert fake_stdio == [("reader", "writer")]
        err = capfd.readouterr().err
        assert "listening on stdio" in err
        assert "stdio stream closed" in err
        assert "'size': 0" in err
        assert "cache disabled" not in err

    @pytest.mark.asyncio
    async def test_warns_when_cache_disabled(self, fake_stdio, capfd) -> None:
        set_output(OutputManager(no_color=True, quiet=True))
        await run_stdio(make_config(enabled=False))
        assert "Response cache disabled" in capfd.readouterr().err
