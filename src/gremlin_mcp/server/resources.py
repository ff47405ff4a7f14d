"""MCP resources: Gremlin teams and services addressed by URI.

Two URI templates are published:

* ``gremlin://team/{teamId}`` -- one resource per team visible to the key.
* ``gremlin://service/{teamId}/{serviceId}`` -- one resource per service in
  every team the calling user belongs to.

Listing is best effort: an upstream failure is reported on stderr and the
affected listing comes back empty.  Reading a resource that cannot be
fetched raises :class:`~gremlin_mcp.exceptions.ToolError`.
"""

from __future__ import annotations

import json
import re
from urllib.parse import quote, unquote

from mcp import types
from mcp.server.lowlevel.helper_types import ReadResourceContents
from pydantic import ValidationError

from gremlin_mcp.client import GremlinApi
from gremlin_mcp.exceptions import GremlinMcpError, InvalidUsageError, ToolError
from gremlin_mcp.output import get_output

JSON_MIME_TYPE = "application/json"

TEAM_TEMPLATE = "gremlin://team/{teamId}"
SERVICE_TEMPLATE = "gremlin://service/{teamId}/{serviceId}"

_TEAM_URI = re.compile(r"^gremlin://team/(?P<team_id>[^/]+)/?$")
_SERVICE_URI = re.compile(r"^gremlin://service/(?P<team_id>[^/]+)/(?P<service_id>[^/]+)/?$")


def team_uri(team_id: str) -> str:
    return f"gremlin://team/{quote(team_id, safe='')}"


def service_uri(team_id: str, service_id: str) -> str:
    return f"gremlin://service/{quote(team_id, safe='')}/{quote(service_id, safe='')}"


def list_resource_templates() -> list[types.ResourceTemplate]:
    return [
        types.ResourceTemplate(
            uriTemplate=TEAM_TEMPLATE,
            name="teams",
            description="A Gremlin team.",
            mimeType=JSON_MIME_TYPE,
        ),
        types.ResourceTemplate(
            uriTemplate=SERVICE_TEMPLATE,
            name="services",
            description="A reliability management service owned by a team.",
            mimeType=JSON_MIME_TYPE,
        ),
    ]


# ------------------------------------------------------------------ #
# Listing
# ------------------------------------------------------------------ #


async def list_team_resources(api: GremlinApi) -> list[types.Resource]:
    try:
        teams = await api.list_teams()
    except (GremlinMcpError, ValidationError) as exc:
        get_output().error(f"Error fetching teams: {exc}")
        return []

    return [
        types.Resource(
            uri=team_uri(team.identifier),
            name=team.name,
            description=f"Team {team.name} (company: {team.company_id or 'unknown'}, "
            f"production: {'yes' if team.production else 'no'})",
            mimeType=JSON_MIME_TYPE,
        )
        for team in teams
    ]


async def list_service_resources(api: GremlinApi) -> list[types.Resource]:
    resources: list[types.Resource] = []
    try:
        me = await api.get_self()
        for team_id in me.team_memberships:
            page = await api.list_services_for_team(team_id)
            for service in page.items:
                resources.append(
                    types.Resource(
                        uri=service_uri(service.team_id, service.service_id),
                        name=service.name,
                        description=f"targets: {service.targets}",
                        mimeType=JSON_MIME_TYPE,
                    )
                )
    except (GremlinMcpError, ValidationError) as exc:
        get_output().error(f"Error fetching services: {exc}")
        return []
    return resources


async def list_resources(api: GremlinApi) -> list[types.Resource]:
    """List every team and service resource."""
    return await list_team_resources(api) + await list_service_resources(api)


# ------------------------------------------------------------------ #
# Reading
# ------------------------------------------------------------------ #


async def read_resource(api: GremlinApi, uri: str) -> list[ReadResourceContents]:
    """Fetch the team or service addressed by *uri* as JSON text.

    Raises:
        InvalidUsageError: If *uri* matches neither template.
        ToolError: If the team or service cannot be fetched.
    """
    match = _TEAM_URI.match(uri)
    if match:
        team_id = unquote(match["team_id"])
        try:
            team = await api.get_team(team_id)
        except (GremlinMcpError, ValidationError) as exc:
            raise ToolError(f"Failed to get team: {exc}") from exc
        return _contents(team.to_json())

    match = _SERVICE_URI.match(uri)
    if match:
        team_id = unquote(match["team_id"])
        service_id = unquote(match["service_id"])
        try:
            service = await api.get_service(service_id, team_id)
        except (GremlinMcpError, ValidationError) as exc:
            raise ToolError(f"Failed to get service: {exc}") from exc
        return _contents(service.to_json())

    raise InvalidUsageError(f"Unknown resource URI: {uri}")


def _contents(payload: dict) -> list[ReadResourceContents]:
    return [ReadResourceContents(content=json.dumps(payload, indent=2), mime_type=JSON_MIME_TYPE)]
