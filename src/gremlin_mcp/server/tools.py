"""MCP tools: argument schemas, handlers and payload trimming.

Each tool is a :class:`ToolDefinition` binding a name and description to a
Pydantic argument model (whose JSON schema becomes the MCP ``inputSchema``)
and an async handler that calls one or more
:class:`~gremlin_mcp.client.GremlinApi` methods.

:func:`call_tool` is the single dispatch point used by the server:

1. Unknown tool names and invalid arguments raise
   :class:`~gremlin_mcp.exceptions.InvalidUsageError` describing what was
   received and what was expected.
2. Any failure inside a handler is reported on stderr and re-raised as a
   :class:`~gremlin_mcp.exceptions.ToolError` with a short
   ``Failed to fetch <thing>: <reason>`` message.
3. Results are returned as pretty-printed JSON text content.

Two handlers shrink their payloads before returning them:
``list_services`` empties every service's ``schedulableTests`` and
``get_reliability_experiments`` empties ``run.graph.nodesRecursive``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from mcp import types
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from gremlin_mcp.client import GremlinApi
from gremlin_mcp.exceptions import GremlinMcpError, InvalidUsageError, ToolError
from gremlin_mcp.models import Page
from gremlin_mcp.output import get_output


# ------------------------------------------------------------------ #
# Argument models
# ------------------------------------------------------------------ #


class _Arguments(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NoArguments(_Arguments):
    pass


class ServiceArguments(_Arguments):
    team_id: str = Field(min_length=1, description="The ID of the team that owns the service.")
    service_id: str = Field(min_length=1, description="The ID of the service.")


class ReliabilityReportArguments(ServiceArguments):
    date: Optional[str] = Field(
        default=None,
        description="The date for which to retrieve the reliability report, in "
        "YYYY-MM-DD format. Defaults to today.",
    )


class ReliabilityExperimentArguments(ServiceArguments):
    dependency_id: Optional[str] = Field(
        default=None,
        description="The ID of the dependency to retrieve the reliability experiment "
        "for, if applicable.",
    )
    test_id: Optional[str] = Field(
        default=None,
        description="The ID of the reliability test to retrieve the experiment for, "
        "if applicable.",
    )
    limit: Optional[int] = Field(
        default=None,
        ge=1,
        description="The maximum number of results to return. Defaults to 100.",
    )


class RecentReliabilityTestsArguments(_Arguments):
    team_id: str = Field(min_length=1, description="The ID of the team that owns the service.")
    page_size: Optional[int] = Field(
        default=None,
        ge=1,
        description="The maximum number of results to return. Defaults to 5.",
    )
    page_token: Optional[str] = Field(
        default=None, description="The token for pagination, if applicable."
    )


class SuiteArguments(_Arguments):
    team_id: Optional[str] = Field(
        default=None,
        description="The ID of the team you're examining the current test suite for.",
    )


# ------------------------------------------------------------------ #
# Handlers
# ------------------------------------------------------------------ #


async def _list_services(api: GremlinApi, args: NoArguments) -> list[dict[str, Any]]:
    me = await api.get_self()
    services: list[dict[str, Any]] = []
    for team_id in me.team_memberships:
        page = await api.list_services_for_team(team_id)
        for service in page.items:
            service.schedulable_tests = []
            services.append(service.to_json())
    return services


async def _get_service_dependencies(api: GremlinApi, args: ServiceArguments) -> Any:
    return await api.get_service_dependencies(args.service_id, args.team_id)


async def _get_service_status_checks(api: GremlinApi, args: ServiceArguments) -> Any:
    return await api.get_service_status_checks(args.service_id, args.team_id)


async def _list_service_risks(api: GremlinApi, args: ServiceArguments) -> Any:
    return await api.get_service_risks(args.service_id, args.team_id)


async def _get_reliability_report(
    api: GremlinApi, args: ReliabilityReportArguments
) -> dict[str, Any]:
    report = await api.get_reliability_report(args.service_id, args.team_id, args.date)
    return report.to_json()


async def _get_reliability_experiments(
    api: GremlinApi, args: ReliabilityExperimentArguments
) -> dict[str, Any]:
    result = await api.get_reliability_experiment(
        args.service_id,
        args.team_id,
        dependency_id=args.dependency_id,
        test_id=args.test_id,
        limit=args.limit or 100,
    )
    runs = result.items if isinstance(result, Page) else [result]
    for run in runs:
        run.drop_recursive_nodes()
    return result.to_json()


async def _get_recent_reliability_tests(
    api: GremlinApi, args: RecentReliabilityTestsArguments
) -> dict[str, Any]:
    page = await api.get_recent_reliability_tests(
        args.team_id, limit=args.page_size or 5, page_token=args.page_token
    )
    return page.to_json()


async def _get_current_test_suite(
    api: GremlinApi, args: SuiteArguments
) -> list[dict[str, Any]]:
    suites = await api.list_test_suites()
    if not args.team_id or not suites:
        return [suite.to_json() for suite in suites]

    matching = [suite for suite in suites if suite.targets_team(args.team_id)]
    if not matching:
        raise ToolError(f"No test suites found for team ID: {args.team_id}")
    return [suite.to_json() for suite in matching]


async def _list_teams(api: GremlinApi, args: NoArguments) -> list[dict[str, Any]]:
    return [team.to_json() for team in await api.list_teams()]


# ------------------------------------------------------------------ #
# Registry
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class ToolDefinition:
    """A tool exposed to the agent.

    Attributes:
        name: Tool name as seen by the agent.
        description: One-line description shown in the tool listing.
        arguments: Pydantic model validating the call arguments.
        handler: Coroutine producing a JSON-serialisable result.
        subject: What the tool fetches, used in failure messages.
    """

    name: str
    description: str
    arguments: type[_Arguments]
    handler: Callable[[GremlinApi, Any], Awaitable[Any]]
    subject: str

    def to_mcp(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.arguments.model_json_schema(by_alias=True),
        )

    def parse(self, arguments: Optional[dict[str, Any]]) -> _Arguments:
        try:
            return self.arguments.model_validate(arguments or {})
        except ValidationError as exc:
            received = json.dumps(arguments or {}, default=str)
            raise InvalidUsageError(
                f"got {received} but expected {_expected_shape(self.arguments)}"
            ) from exc


def _expected_shape(model: type[BaseModel]) -> str:
    required = [
        f"{field.alias or name}: string"
        for name, field in model.model_fields.items()
        if field.is_required()
    ]
    return "{ " + ", ".join(required) + " }" if required else "{}"


TOOLS: list[ToolDefinition] = [
    ToolDefinition(
        name="list_services",
        description="Lists available reliability management services (RM Services for "
        "short). Returns service names, descriptions, score, and targeting information.",
        arguments=NoArguments,
        handler=_list_services,
        subject="services",
    ),
    ToolDefinition(
        name="get_service_dependencies",
        description="Retrieves the service dependencies for a specific service.",
        arguments=ServiceArguments,
        handler=_get_service_dependencies,
        subject="service dependencies",
    ),
    ToolDefinition(
        name="get_service_status_checks",
        description="Retrieves the status checks for a specific service.",
        arguments=ServiceArguments,
        handler=_get_service_status_checks,
        subject="service status checks",
    ),
    ToolDefinition(
        name="list_service_risks",
        description="Lists the risks associated with a specific service.",
        arguments=ServiceArguments,
        handler=_list_service_risks,
        subject="service risks",
    ),
    ToolDefinition(
        name="get_reliability_report",
        description="Retrieves the reliability report for a specific service.",
        arguments=ReliabilityReportArguments,
        handler=_get_reliability_report,
        subject="reliability report",
    ),
    ToolDefinition(
        name="get_reliability_experiments",
        description="Retrieves recent reliability experiment for a specific service.",
        arguments=ReliabilityExperimentArguments,
        handler=_get_reliability_experiments,
        subject="reliability experiments",
    ),
    ToolDefinition(
        name="get_recent_reliability_tests",
        description="Retrieves recent reliability tests for a given team.",
        arguments=RecentReliabilityTestsArguments,
        handler=_get_recent_reliability_tests,
        subject="recent reliability tests",
    ),
    ToolDefinition(
        name="get_current_test_suite",
        description="Retrieves the current test suite for a specific team. Or all if no "
        "team is specified.",
        arguments=SuiteArguments,
        handler=_get_current_test_suite,
        subject="current test suite",
    ),
    ToolDefinition(
        name="list_teams",
        description="Lists all teams you have access to",
        arguments=NoArguments,
        handler=_list_teams,
        subject="teams",
    ),
]

_TOOLS_BY_NAME: dict[str, ToolDefinition] = {tool.name: tool for tool in TOOLS}


def list_tools() -> list[types.Tool]:
    """Return the MCP descriptors of every registered tool."""
    return [tool.to_mcp() for tool in TOOLS]


async def call_tool(
    api: GremlinApi,
    name: str,
    arguments: Optional[dict[str, Any]],
) -> list[types.TextContent]:
    """Run the tool *name* and return its result as JSON text content.

    Raises:
        InvalidUsageError: For an unknown tool or invalid arguments.
        ToolError: When the handler fails; the message is agent-facing.
    """
    tool = _TOOLS_BY_NAME.get(name)
    if tool is None:
        raise InvalidUsageError(f"Unknown tool: {name}")

    args = tool.parse(arguments)
    try:
        result = await tool.handler(api, args)
    except (GremlinMcpError, ValidationError) as exc:
        reason = _reason(exc)
        get_output().error(f"Error fetching {tool.subject}: {reason}")
        raise ToolError(f"Failed to fetch {tool.subject}: {reason}") from exc

    text = result if isinstance(result, str) else json.dumps(result, indent=2)
    return [types.TextContent(type="text", text=text)]


def _reason(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "body"
        reason = f"unexpected response shape: {location}: {first['msg']}"
        if exc.error_count() > 1:
            reason += f" (+{exc.error_count() - 1} more)"
        return reason
    return str(exc)
