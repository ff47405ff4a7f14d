"""Typed facade over the Gremlin REST API.

:class:`GremlinApi` maps each Vendor API endpoint to one method that
validates the identifiers it needs, issues a single
:meth:`~gremlin_mcp.client.async_client.GremlinClient.request` and parses
the JSON body into the matching model from :mod:`gremlin_mcp.models`.

Identifier validation happens here, before any network I/O, and raises
:class:`~gremlin_mcp.exceptions.InvalidUsageError`.  Transport, status and
decoding failures surface as :class:`~gremlin_mcp.exceptions.RequestFailed`
from the client.  A payload that does not match its model raises
:class:`pydantic.ValidationError`.
"""

from __future__ import annotations

from typing import Any, Optional, Union
from urllib.parse import quote

from gremlin_mcp.client.async_client import GremlinClient
from gremlin_mcp.exceptions import InvalidUsageError
from gremlin_mcp.models import (
    CurrentUser,
    Page,
    RecentRun,
    ReliabilityReport,
    ReliabilityTestRun,
    ReliabilityTestSuite,
    Service,
    Team,
)

ExperimentResult = Union[Page[ReliabilityTestRun], ReliabilityTestRun]


def _require(purpose: str, **identifiers: Optional[str]) -> None:
    missing = [name for name, value in identifiers.items() if not value]
    if not missing:
        return
    names = list(identifiers)
    if len(names) == 1:
        raise InvalidUsageError(f"{names[0]} is required to fetch the {purpose}.")
    raise InvalidUsageError(
        f"Both {' and '.join(names)} are required to fetch the {purpose}."
    )


def _segment(identifier: str) -> str:
    """Percent-encode an identifier for use as one path segment."""
    return quote(identifier, safe="")


class GremlinApi:
    """One typed method per Gremlin API endpoint used by the MCP server.

    Args:
        client: An open :class:`GremlinClient`.  The same instance (and so
            the same response cache) is shared by every tool and resource.
    """

    def __init__(self, client: GremlinClient) -> None:
        self._client = client

    # --- Users and teams ---

    async def get_self(self) -> CurrentUser:
        data = await self._client.get("users/self")
        return CurrentUser.model_validate(data)

    async def list_teams(self) -> list[Team]:
        data = await self._client.get("teams")
        return [Team.model_validate(item) for item in data]

    async def get_team(self, team_id: str) -> Team:
        _require("team details", teamId=team_id)
        data = await self._client.get(f"teams/{_segment(team_id)}")
        return Team.model_validate(data)

    # --- Services ---

    async def list_services_for_team(self, team_id: str) -> Page[Service]:
        _require("team services", teamId=team_id)
        data = await self._client.get("services", params={"teamId": team_id})
        return Page[Service].model_validate(data)

    async def get_service(self, service_id: str, team_id: str) -> Service:
        _require("service", serviceId=service_id, teamId=team_id)
        data = await self._client.get(f"services/{_segment(service_id)}", params={"teamId": team_id})
        return Service.model_validate(data)

    async def get_service_dependencies(self, service_id: str, team_id: str) -> Any:
        _require("service dependencies", serviceId=service_id, teamId=team_id)
        return await self._client.get(
            f"services/{_segment(service_id)}/dependencies", params={"teamId": team_id}
        )

    async def get_service_status_checks(self, service_id: str, team_id: str) -> Any:
        _require("service status checks", serviceId=service_id, teamId=team_id)
        return await self._client.get(
            f"services/{_segment(service_id)}/status-checks", params={"teamId": team_id}
        )

    async def get_service_risks(self, service_id: str, team_id: str) -> Any:
        _require("service risks", serviceId=service_id, teamId=team_id)
        return await self._client.get(
            f"services/{_segment(service_id)}/risk-summary", params={"teamId": team_id}
        )

    # --- Reliability management ---

    async def get_reliability_report(
        self,
        service_id: str,
        team_id: str,
        date: Optional[str] = None,
    ) -> ReliabilityReport:
        """Fetch the reliability report of a service.

        Args:
            service_id: Service identifier.
            team_id: Owning team identifier.
            date: Optional ``YYYY-MM-DD``.  Empty strings and the literal
                ``"undefined"`` (sent by some agents) are ignored.
        """
        _require("reliability report", serviceId=service_id, teamId=team_id)
        params: dict[str, Any] = {"teamId": team_id}
        if date and date != "undefined":
            params["date"] = date
        data = await self._client.get(
            f"policies/{_segment(service_id)}/reliability-report", params=params
        )
        return ReliabilityReport.model_validate(data)

    async def list_test_suites(self) -> list[ReliabilityTestSuite]:
        data = await self._client.get("test-suites")
        return [ReliabilityTestSuite.model_validate(item) for item in data]

    async def get_recent_reliability_tests(
        self,
        team_id: str,
        limit: int = 5,
        page_token: Optional[str] = None,
    ) -> Page[RecentRun]:
        _require("recent reliability tests", teamId=team_id)
        params: dict[str, Any] = {"teamId": team_id, "pageSize": limit}
        if page_token:
            params["pageToken"] = page_token
        data = await self._client.get("reliability-tests/completed/paged", params=params)
        return Page[RecentRun].model_validate(data)

    async def get_reliability_experiment(
        self,
        service_id: str,
        team_id: str,
        dependency_id: Optional[str] = None,
        test_id: Optional[str] = None,
        limit: int = 100,
    ) -> ExperimentResult:
        """Fetch reliability test runs for a service.

        With *test_id* the runs of that one test are requested, otherwise
        all runs for the service.  The API answers with either a page of
        runs (an object carrying ``items``) or a single run; the return
        type follows the payload.
        """
        _require("reliability experiment", serviceId=service_id, teamId=team_id)
        params: dict[str, Any] = {"teamId": team_id, "serviceId": service_id, "pageSize": limit}
        if dependency_id:
            params["dependencyId"] = dependency_id

        path = f"reliability-tests/{_segment(test_id)}/runs" if test_id else "reliability-tests/runs"
        data = await self._client.get(path, params=params)
        if isinstance(data, dict) and "items" in data:
            return Page[ReliabilityTestRun].model_validate(data)
        return ReliabilityTestRun.model_validate(data)
